"""
Listing Routes - Web API for Property Listings

Thin HTTP surface over ListingIntegrityService.

Access Control:
- The identity layer in front of this service authenticates the caller
  and forwards X-User-Id / X-User-Role
- Reads are public; every write requires X-User-Id
- Ownership and admin checks happen in the lifecycle controller

Errors raised by the engine are mapped to status codes by the
application-wide handler in web.app.
"""

from __future__ import annotations

from typing import Any, Optional, Union

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request
from pydantic import BaseModel, Field

from core.integrity import ListingIntegrityService, LifecycleAction
from core.listing import (
    Actor,
    ListingAttempt,
    PropertyCategory,
    PropertyStatus,
    TransactionType,
)
from core.listing.schema import parse_enum


# =============================================================================
# Router Setup
# =============================================================================

router = APIRouter(prefix="/api/properties", tags=["properties"])


def get_service(request: Request) -> ListingIntegrityService:
    """The service instance attached to the application at startup."""
    return request.app.state.service


def require_actor(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
) -> Actor:
    """
    Build the calling actor from identity headers.

    Raises:
        HTTPException(401) if no user id was forwarded
    """
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Authentication required")
    return Actor.parse(x_user_id, x_user_role)


# =============================================================================
# Request Models
# =============================================================================


class ResidentialIn(BaseModel):
    """Residential variant block."""

    bhk: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[int] = Field(None, ge=0)
    balconies: Optional[int] = Field(None, ge=0)
    furnishing: Optional[str] = None
    floor: Optional[int] = None
    total_floors: Optional[int] = Field(None, ge=0)
    parking: Optional[str] = None


class CommercialIn(BaseModel):
    """Commercial / industrial variant block."""

    built_up_area: Optional[float] = Field(None, ge=0)
    carpet_area: Optional[float] = Field(None, ge=0)
    power_load: Optional[float] = Field(None, ge=0)
    floor_load_capacity: Optional[float] = Field(None, ge=0)
    ceiling_height: Optional[float] = Field(None, ge=0)
    dock_available: Optional[bool] = None
    freight_elevator: Optional[bool] = None


class LandIn(BaseModel):
    """Land variant block."""

    plot_area: Optional[float] = Field(None, ge=0)
    area_unit: Optional[str] = None
    frontage: Optional[float] = Field(None, ge=0)
    depth: Optional[float] = Field(None, ge=0)
    road_access_width: Optional[float] = Field(None, ge=0)
    zoning_type: Optional[str] = None
    water_available: Optional[bool] = None
    electricity_available: Optional[bool] = None
    fsi: Optional[float] = Field(None, ge=0)


class LocationIn(BaseModel):
    country: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None
    area: Optional[str] = None
    locality: Optional[str] = None
    pincode: Optional[str] = None
    address: Optional[str] = None
    landmark: Optional[str] = None
    # [longitude, latitude] or a GeoJSON Point
    coordinates: Optional[Union[list[float], dict[str, Any]]] = None


class PricingIn(BaseModel):
    expected_price: Optional[float] = Field(None, ge=0)
    rent_amount: Optional[float] = Field(None, ge=0)
    lease_value: Optional[float] = Field(None, ge=0)
    price_negotiable: Optional[bool] = None
    maintenance_charges: Optional[float] = Field(None, ge=0)
    security_deposit: Optional[float] = Field(None, ge=0)
    currency: Optional[str] = None


class MediaIn(BaseModel):
    images: list[str] = []
    videos: list[str] = []
    floor_plans: list[str] = []
    virtual_tour: Optional[str] = None


class LegalIn(BaseModel):
    rera_number: Optional[str] = None
    title_deed: Optional[str] = None
    encumbrance_certificate: Optional[str] = None
    title_clear: Optional[bool] = None
    encumbrance_free: Optional[bool] = None
    litigation_status: Optional[str] = None


class PropertyPayload(BaseModel):
    """Fields shared by create and update."""

    title: Optional[str] = None
    description: Optional[str] = None
    sub_type: Optional[str] = None
    category: Optional[str] = None
    transaction_type: Optional[str] = None
    residential: Optional[ResidentialIn] = None
    commercial: Optional[CommercialIn] = None
    land: Optional[LandIn] = None
    location: Optional[LocationIn] = None
    pricing: Optional[PricingIn] = None
    media: Optional[MediaIn] = None
    legal: Optional[LegalIn] = None


class CreatePropertyRequest(PropertyPayload):
    """Request body for a new listing."""

    title: str
    category: str
    transaction_type: str


class UpdatePropertyRequest(PropertyPayload):
    """Request body for an update. Only fields sent are changed."""

    status: Optional[str] = None


class TransitionRequest(BaseModel):
    """Optional body for lifecycle actions."""

    reason: Optional[str] = None


# =============================================================================
# Writes
# =============================================================================


@router.post("", status_code=201)
def create_property(
    body: CreatePropertyRequest,
    actor: Actor = Depends(require_actor),
    service: ListingIntegrityService = Depends(get_service),
):
    """
    Create a DRAFT listing.

    Returns the property and any price warnings. Blocked with 429 when the
    daily cap is hit and 409 when a near-identical listing exists nearby.
    """
    attempt = ListingAttempt.from_dict(body.model_dump(exclude_none=True))
    result = service.create_listing(attempt, actor)

    response = {"success": True, "data": result.property.to_dict()}
    if result.warnings:
        response["warnings"] = result.warnings
    return response


@router.put("/{property_id}")
def update_property(
    property_id: str,
    body: UpdatePropertyRequest,
    actor: Actor = Depends(require_actor),
    service: ListingIntegrityService = Depends(get_service),
):
    """Update listing fields, or close it as SOLD / RENTED."""
    changes = body.model_dump(exclude_unset=True)
    prop = service.update_listing(property_id, changes, actor)
    return {"success": True, "data": prop.to_dict()}


@router.delete("/{property_id}")
def delete_property(
    property_id: str,
    actor: Actor = Depends(require_actor),
    service: ListingIntegrityService = Depends(get_service),
):
    """Permanently delete a listing (owner only)."""
    service.delete_listing(property_id, actor)
    return {"success": True, "message": "Property deleted successfully"}


@router.post("/{property_id}/{action}")
def transition_property(
    property_id: str,
    action: LifecycleAction,
    body: Optional[TransitionRequest] = None,
    actor: Actor = Depends(require_actor),
    service: ListingIntegrityService = Depends(get_service),
):
    """Apply submit, approve, reject, pause or resume."""
    reason = body.reason if body else None
    prop = service.transition(property_id, action, actor, reason=reason)
    return {"success": True, "data": prop.to_dict()}


# =============================================================================
# Reads
# =============================================================================


@router.get("")
def list_properties(
    status: Optional[str] = Query(None),
    listed_by: Optional[str] = Query(None),
    city: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    transaction_type: Optional[str] = Query(None),
    min_price: Optional[float] = Query(None),
    max_price: Optional[float] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    service: ListingIntegrityService = Depends(get_service),
):
    """Paginated listing search, newest first."""
    items, total = service.list_listings(
        status=parse_enum(PropertyStatus, status, "status"),
        listed_by=listed_by,
        page=page,
        limit=limit,
        city=city,
        state=state,
        category=parse_enum(PropertyCategory, category, "category"),
        transaction_type=parse_enum(TransactionType, transaction_type, "transaction_type"),
        min_price=min_price,
        max_price=max_price,
    )

    return {
        "success": True,
        "data": [p.to_dict() for p in items],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": (total + limit - 1) // limit,
        },
    }


@router.get("/{property_id}")
def get_property(
    property_id: str,
    service: ListingIntegrityService = Depends(get_service),
):
    """Get a single listing. Each fetch counts as a view."""
    prop = service.view_listing(property_id)
    return {"success": True, "data": prop.to_dict()}


@router.get("/{property_id}/verification")
def get_property_verification(
    property_id: str,
    service: ListingIntegrityService = Depends(get_service),
):
    """Get the full verification record behind a listing's asset DNA."""
    record = service.get_verification(property_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Verification record not found")
    return {"success": True, "data": record.to_dict()}
