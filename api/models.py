"""
Pydantic request/response models for the API.

Response models mirror the JSON the admin front-end already consumes.
Optional fields default to None so rows with NULL columns stay valid.
Create/update records are loose (``dict[str, Any]``); field rules live in
utils.validation, which reports the first violated rule by name.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


# ── Listing ───────────────────────────────────────────────────────────────────

class ResourceRow(BaseModel):
    """One provider row joined with its resource."""
    id: int = Field(..., description="Provider row ID", examples=[17])
    email: str | None = Field(None, description="Provider contact email", examples=["owner@example.com"])
    currency: str | None = Field(None, description="Currency of the prices", examples=["USD"])
    price: float | None = Field(None, description="Standard placement price", examples=[120.0])
    casino_price: float | None = Field(None, description="Price for casino content")
    cbd_price: float | None = Field(None, description="Price for CBD content")
    adult_price: float | None = Field(None, description="Price for adult content")
    payment_method: str | None = Field(None, description="Accepted payment method", examples=["PayPal"])
    promotions: str | None = Field(None, description="Current promotions")
    usd_price: float | None = Field(None, description="Standard price converted to USD")
    notes: str | None = Field(None, description="Free-text notes")
    resource_id: int = Field(..., description="Resource ID", examples=[5])
    resource: str = Field(..., description="Resource domain", examples=["example.com"])
    da: float | None = Field(None, description="Domain Authority")
    dr: float | None = Field(None, description="Domain Rating")
    rd: float | None = Field(None, description="Referring domains")
    tr: float | None = Field(None, description="Traffic")
    pa: float | None = Field(None, description="Page Authority")
    tf: float | None = Field(None, description="Trust Flow")
    cf: float | None = Field(None, description="Citation Flow")
    organic_keywords: float | None = Field(None, description="Organic keyword count")
    metrics_update_date: str | None = Field(None, description="Date the metrics were refreshed", examples=["2023-01-15"])
    social_media: str | None = Field(None, description="Social media links")
    other_info: str | None = Field(None, description="Other information")
    main_category: str | None = Field(None, description="Main category", examples=["Tech.Mobile"])
    other_categories: str | None = Field(None, description="Comma-separated extra categories", examples=["Business,Finance"])


class ResourceListResponse(BaseModel):
    """Response body for GET /api/v1/resources."""
    total: int = Field(..., description="Joined rows with no filters applied", examples=[500])
    total_filtered: int = Field(..., description="Joined rows matching the filters, before paging", examples=[42])
    limit: int = Field(..., description="Page size used", examples=[50])
    page: int = Field(..., description="1-indexed page number", examples=[1])
    sortby: str = Field(..., description="Effective sort column", examples=["resource"])
    order: str = Field(..., description="Effective sort direction", examples=["ASC"])
    data_count: int = Field(..., description="Rows returned in this page", examples=[42])
    data: list[ResourceRow] = Field(..., description="The page of joined rows")
    page_window: str = Field(
        ...,
        description="'limit': each page returns at most `limit` rows. "
                    "'legacy': page N returns up to N*limit rows starting at (N-1)*limit.",
        examples=["limit"],
    )


# ── Single resource ───────────────────────────────────────────────────────────

class ProviderOut(BaseModel):
    """A provider row as stored."""
    id: int
    resource_id: int
    email: str | None = None
    currency: str | None = None
    price: float | None = None
    casino_price: float | None = None
    cbd_price: float | None = None
    adult_price: float | None = None
    payment_method: str | None = None
    promotions: str | None = None
    usd_price: float | None = None
    notes: str | None = None


class ResourceDetailOut(BaseModel):
    """A resource with every provider row that references it."""
    resource_id: int = Field(..., examples=[5])
    resource: str = Field(..., examples=["example.com"])
    main_category: str | None = None
    other_categories: str | None = None
    da: float | None = None
    dr: float | None = None
    rd: float | None = None
    tr: float | None = None
    pa: float | None = None
    tf: float | None = None
    cf: float | None = None
    organic_keywords: float | None = None
    metrics_update_date: str | None = None
    social_media: str | None = None
    other_info: str | None = None
    providers: list[ProviderOut] = Field(default_factory=list)


# ── Writes ────────────────────────────────────────────────────────────────────

class ResourceCreateRequest(BaseModel):
    """Request body for POST /api/v1/resources."""
    data: list[Any] | None = Field(
        None,
        description="Submission records; each carries resource and provider fields. "
                    "A missing data field is reported as 'data field is required'; "
                    "an empty list succeeds and writes nothing.",
        examples=[[{
            "resource": "https://www.example.com",
            "main_category": "Tech.Mobile",
            "email": "owner@example.com",
            "price": "120",
        }]],
    )


class StatusResponse(BaseModel):
    """{status, code, message} body for create and failed update."""
    status: str = Field(..., examples=["success"])
    code: int = Field(..., examples=[200])
    message: str = Field(..., examples=["Requested successfully!"])


class DeleteResponse(BaseModel):
    """Response body for DELETE /api/v1/resources/{resource_id}."""
    deleted: bool = Field(..., examples=[True])
    force: bool = Field(..., description="True if rows were removed, False for a soft delete")
    resource_id: int = Field(..., examples=[5])


# ── Error model ───────────────────────────────────────────────────────────────

class ErrorResponse(BaseModel):
    """Standard error response body."""
    error: str = Field(..., description="Short error category", examples=["Bad request"])
    detail: str | None = Field(None, description="Extended error detail")
    status_code: int = Field(..., ge=400, le=599, description="HTTP status code", examples=[400])
