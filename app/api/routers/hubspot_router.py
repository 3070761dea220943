"""
app/api/routers/hubspot_router.py

HubSpot CRM proxy and sync endpoints.

Upstream failures surface as ``ExternalServiceError`` and are mapped to 502
by the application exception handlers.
"""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.dependencies import get_metric_store
from app.schemas.hubspot import (
    HubSpotAllData,
    HubSpotAllResponse,
    HubSpotObjectsResponse,
    HubSpotSyncRequest,
    HubSpotSyncResponse,
    PipelineDataResponse,
    PipelineMetricsResponse,
    RevenueDataResponse,
    RevenueMetricsResponse,
)
from app.services.hubspot_sync_service import (
    HubSpotSyncService,
    InvalidSyncRequestError,
    get_hubspot_sync_service,
)
from db.repositories.metric_store import MetricStore

router = APIRouter(prefix="/hubspot", tags=["hubspot"])


def _now() -> datetime:
    return datetime.now(timezone.utc)


@router.get("/pipeline", response_model=PipelineDataResponse)
def get_pipeline(sync_service: HubSpotSyncService = Depends(get_hubspot_sync_service)) -> PipelineDataResponse:
    metrics = sync_service.client.get_pipeline_metrics()
    return PipelineDataResponse(data=PipelineMetricsResponse.model_validate(metrics), timestamp=_now())


@router.get("/revenue", response_model=RevenueDataResponse)
def get_revenue(sync_service: HubSpotSyncService = Depends(get_hubspot_sync_service)) -> RevenueDataResponse:
    metrics = sync_service.client.get_revenue_metrics()
    return RevenueDataResponse(data=RevenueMetricsResponse.model_validate(metrics), timestamp=_now())


@router.get("/deals", response_model=HubSpotObjectsResponse)
def get_deals(sync_service: HubSpotSyncService = Depends(get_hubspot_sync_service)) -> HubSpotObjectsResponse:
    deals = sync_service.client.get_deals()
    return HubSpotObjectsResponse(data=deals, count=len(deals), timestamp=_now())


@router.get("/contacts", response_model=HubSpotObjectsResponse)
def get_contacts(sync_service: HubSpotSyncService = Depends(get_hubspot_sync_service)) -> HubSpotObjectsResponse:
    contacts = sync_service.client.get_contacts()
    return HubSpotObjectsResponse(data=contacts, count=len(contacts), timestamp=_now())


@router.get("/companies", response_model=HubSpotObjectsResponse)
def get_companies(sync_service: HubSpotSyncService = Depends(get_hubspot_sync_service)) -> HubSpotObjectsResponse:
    companies = sync_service.client.get_companies()
    return HubSpotObjectsResponse(data=companies, count=len(companies), timestamp=_now())


@router.get("/all", response_model=HubSpotAllResponse)
def get_all(sync_service: HubSpotSyncService = Depends(get_hubspot_sync_service)) -> HubSpotAllResponse:
    client = sync_service.client
    return HubSpotAllResponse(
        data=HubSpotAllData(
            pipeline=PipelineMetricsResponse.model_validate(client.get_pipeline_metrics()),
            revenue=RevenueMetricsResponse.model_validate(client.get_revenue_metrics()),
            deals=client.get_deals(),
            contacts=client.get_contacts(),
            companies=client.get_companies(),
        ),
        timestamp=_now(),
    )


@router.post("/sync", response_model=HubSpotSyncResponse)
def sync(
    payload: HubSpotSyncRequest,
    store: MetricStore = Depends(get_metric_store),
    sync_service: HubSpotSyncService = Depends(get_hubspot_sync_service),
) -> HubSpotSyncResponse:
    """
    Fetch one HubSpot data type and append it as quarterly metric rows.
    """

    try:
        result = sync_service.sync(
            store=store,
            data_type=payload.data_type or "",
            quarter=payload.quarter,
            year=payload.year,
        )
    except InvalidSyncRequestError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    data = result.data
    if result.data_type == "pipeline":
        data = PipelineMetricsResponse.model_validate(data).model_dump(by_alias=True)
    elif result.data_type == "revenue":
        data = RevenueMetricsResponse.model_validate(data).model_dump(by_alias=True)

    return HubSpotSyncResponse(
        message=f"Successfully synced {result.data_type} data from HubSpot",
        quarter=result.quarter,
        year=result.year,
        records_written=len(result.record_ids),
        data=data,
        timestamp=_now(),
    )
