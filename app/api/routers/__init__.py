"""
app/api/routers package marker.
"""

from app.api.routers.analysis_router import router as analysis_router
from app.api.routers.data_router import router as data_router
from app.api.routers.hubspot_router import router as hubspot_router
from app.api.routers.upload_router import router as upload_router

__all__ = [
    "analysis_router",
    "data_router",
    "hubspot_router",
    "upload_router",
]
