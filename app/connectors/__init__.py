"""
app/connectors package marker.
"""

from app.connectors.base import BaseConnector
from app.connectors.hubspot_connector import HubSpotClient, PipelineMetrics, RevenueMetrics

__all__ = [
    "BaseConnector",
    "HubSpotClient",
    "PipelineMetrics",
    "RevenueMetrics",
]
