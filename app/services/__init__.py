"""
app/services package marker.
"""

from app.services.hubspot_sync_service import HubSpotSyncService, get_hubspot_sync_service
from app.services.insight_service import InsightService, get_insight_service
from app.services.upload_service import UploadService, get_upload_service

__all__ = [
    "HubSpotSyncService",
    "get_hubspot_sync_service",
    "InsightService",
    "get_insight_service",
    "UploadService",
    "get_upload_service",
]
