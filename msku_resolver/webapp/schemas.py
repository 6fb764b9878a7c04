"""
Pydantic models for web application requests and responses.

Empty sku/marketplace values pass validation here; the service and engine
report them as InvalidArgumentError.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MappingPayload(BaseModel):
    """Request body for creating or updating a mapping."""

    model_config = ConfigDict(extra="ignore")

    sku: str = Field("", description="Marketplace/seller SKU")
    msku: str = Field("", description="Master SKU")
    marketplace: str = Field("", description="Marketplace name")

    @field_validator("sku", "msku", "marketplace", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        """Treat null fields as empty strings."""
        return "" if v is None else v


class SkuItem(BaseModel):
    """A single {sku, marketplace} lookup request."""

    model_config = ConfigDict(extra="ignore")

    sku: Optional[str] = None
    marketplace: Optional[str] = None


class BulkResolveRequest(BaseModel):
    """Request body for bulk resolution."""

    items: List[SkuItem] = Field(default_factory=list)

    @field_validator("items", mode="before")
    @classmethod
    def ensure_list(cls, v):
        """Ensure items is a list."""
        if v is None:
            return []
        return v


class MatchResponse(BaseModel):
    """Successful single lookup."""

    success: bool = True
    msku: str
    match_type: str
    confidence: float = Field(1.0, gt=0.0, le=1.0)
    pattern_kind: Optional[str] = None


class BulkReportResponse(BaseModel):
    """Bulk resolution accounting."""

    success: bool = True
    processed: int = Field(0, ge=0)
    matched: int = Field(0, ge=0)
    not_matched: int = Field(0, ge=0)
    details: List[Dict[str, Any]] = Field(default_factory=list)


class UploadResponse(BulkReportResponse):
    """Bulk resolution of an uploaded file."""

    file_name: str
    file_type: str
    row_count: int = Field(0, ge=0)
