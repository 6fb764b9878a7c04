"""
FastAPI routes for the MSKU resolver web application.

Handles:
- SKU mapping CRUD
- Single and bulk SKU resolution
- File upload resolution (SKU lists and sales exports)
- Mapping statistics
"""

import logging
from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Depends, File, Request, UploadFile

from msku_resolver.ingestion.sku_extractor import SkuExtractor, load_rows_from_bytes
from msku_resolver.services.resolution_service import ResolutionService
from msku_resolver.services.sales_service import SalesProcessor
from msku_resolver.utils.logging_config import log_context
from msku_resolver.webapp.schemas import (
    BulkReportResponse,
    BulkResolveRequest,
    MappingPayload,
    MatchResponse,
    SkuItem,
    UploadResponse,
)


logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# Dependency Injection
# ============================================================================

def get_resolution_service(request: Request) -> ResolutionService:
    """Get the application's resolution service."""
    return request.app.state.resolution_service


# ============================================================================
# Health
# ============================================================================

@router.get("/health/simple")
async def simple_health_check() -> Dict[str, Any]:
    """Simple health check for load balancers."""
    return {
        "status": "ok",
        "timestamp": datetime.utcnow().isoformat(),
    }


# ============================================================================
# SKU Mapping API - CRUD Operations
# ============================================================================

@router.get("/api/sku-mappings")
async def list_mappings(service: ResolutionService = Depends(get_resolution_service)):
    """Get all SKU mappings."""
    return {"success": True, "data": service.list_mappings()}


@router.get("/api/sku-mappings/{mapping_id}")
async def get_mapping(mapping_id: str, service: ResolutionService = Depends(get_resolution_service)):
    """Get a single SKU mapping."""
    return {"success": True, "data": service.get_mapping(mapping_id)}


@router.post("/api/sku-mappings", status_code=201)
async def create_mapping(
    payload: MappingPayload,
    service: ResolutionService = Depends(get_resolution_service),
):
    """Create a new SKU mapping."""
    record = service.create_mapping(payload.sku, payload.msku, payload.marketplace)
    return {"success": True, "data": record}


@router.put("/api/sku-mappings/{mapping_id}")
async def update_mapping(
    mapping_id: str,
    payload: MappingPayload,
    service: ResolutionService = Depends(get_resolution_service),
):
    """Update a SKU mapping."""
    record = service.update_mapping(mapping_id, payload.sku, payload.msku, payload.marketplace)
    return {"success": True, "data": record}


@router.delete("/api/sku-mappings/{mapping_id}")
async def delete_mapping(mapping_id: str, service: ResolutionService = Depends(get_resolution_service)):
    """Delete a SKU mapping."""
    record = service.delete_mapping(mapping_id)
    return {
        "success": True,
        "message": f"Mapping removed for SKU {record['sku']} in {record['marketplace']}",
        "data": record,
    }


# ============================================================================
# Resolution API
# ============================================================================

@router.post("/api/resolve", response_model=MatchResponse)
async def resolve_sku(item: SkuItem, service: ResolutionService = Depends(get_resolution_service)):
    """Resolve one SKU to its MSKU."""
    result = service.resolve(item.sku, item.marketplace)
    return MatchResponse(**result.to_dict())


@router.post("/api/resolve/bulk", response_model=BulkReportResponse)
async def resolve_bulk(
    payload: BulkResolveRequest,
    service: ResolutionService = Depends(get_resolution_service),
):
    """Resolve many SKUs; per-item failures are reported, not raised."""
    report = service.bulk_resolve(item.model_dump() for item in payload.items)
    return BulkReportResponse(**report.to_dict())


@router.post("/api/upload", response_model=UploadResponse)
async def upload_skus(
    file: UploadFile = File(...),
    service: ResolutionService = Depends(get_resolution_service),
):
    """Extract SKUs from an uploaded CSV/Excel/JSON file and resolve them."""
    content = await file.read()
    file_name = file.filename or "upload"

    with log_context(file_name=file_name):
        extractor = SkuExtractor(service.config)
        extraction = extractor.process_upload(content, file_name, file.content_type or "")
        report = service.bulk_resolve(extraction.candidates)
        logger.info(
            f"Upload {file_name}: {extraction.row_count} rows, "
            f"{report.matched} matched, {report.not_matched} not matched"
        )

    return UploadResponse(
        file_name=extraction.file_name,
        file_type=extraction.file_type,
        row_count=extraction.row_count,
        **report.to_dict(),
    )


@router.post("/api/sales/upload")
async def upload_sales(
    file: UploadFile = File(...),
    service: ResolutionService = Depends(get_resolution_service),
):
    """Resolve every row of an uploaded sales export and summarize it."""
    content = await file.read()
    file_name = file.filename or "upload"

    df = load_rows_from_bytes(content, file_name, file.content_type or "")
    report = SalesProcessor(service).process_sales(df)
    return {"success": True, **report.to_dict()}


@router.get("/api/stats")
async def get_stats(service: ResolutionService = Depends(get_resolution_service)):
    """Mapping and pattern statistics."""
    return {"success": True, "data": service.get_stats()}
