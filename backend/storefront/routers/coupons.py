"""Coupon validation and coupon administration endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from storefront.core.auth import (
    check_validation_rate_limit,
    get_current_store,
    get_store_scope,
    require_admin,
)
from storefront.core.tenancy import StoreScope
from storefront.models.coupon import Coupon
from storefront.models.store import Store
from storefront.repositories.coupon_repository import CouponRepository
from storefront.schemas.coupon import (
    AppliedCoupon,
    CouponCreate,
    CouponResponse,
    CouponUpdate,
    CouponValidateRequest,
    CouponValidateResponse,
)
from storefront.services.coupon_service import CouponService, DuplicateCouponCodeError

public_router = APIRouter()
router = APIRouter(dependencies=[Depends(require_admin)])


@public_router.post(
    "/validate",
    response_model=CouponValidateResponse,
    summary="Validate coupon",
    responses={
        404: {"description": "Store not found"},
        422: {"description": "Validation error"},
        429: {"description": "Rate limit exceeded"},
    },
)
async def validate_coupon(
    data: CouponValidateRequest,
    store: Store = Depends(check_validation_rate_limit),
    scope: StoreScope = Depends(get_store_scope),
) -> CouponValidateResponse:
    """Check a coupon code against a cart total. Does not consume a use."""
    service = CouponService(scope, currency=str(store.currency))
    try:
        result = service.evaluate(data.code, data.cart_total_cents)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None

    if not result.valid or result.coupon is None:
        return CouponValidateResponse(valid=False, error=result.reason)

    coupon = result.coupon
    return CouponValidateResponse(
        valid=True,
        coupon=AppliedCoupon(
            code=str(coupon.code),
            description=coupon.description,  # type: ignore[arg-type]
            discount_type=str(coupon.discount_type),
            discount_value=int(coupon.discount_value),
            discount_amount_cents=result.discount_amount,
        ),
    )


@router.post(
    "/",
    response_model=CouponResponse,
    status_code=201,
    summary="Create coupon",
    responses={
        400: {"description": "Invalid coupon"},
        401: {"description": "Unauthorized"},
        409: {"description": "Coupon with this code already exists"},
        422: {"description": "Validation error"},
    },
)
async def create_coupon(
    data: CouponCreate,
    store: Store = Depends(get_current_store),
    scope: StoreScope = Depends(get_store_scope),
) -> Coupon:
    service = CouponService(scope, currency=str(store.currency))
    try:
        return service.create_coupon(data)
    except DuplicateCouponCodeError as e:
        raise HTTPException(status_code=409, detail=str(e)) from None
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None


@router.get(
    "/",
    response_model=list[CouponResponse],
    summary="List coupons",
    responses={401: {"description": "Unauthorized"}},
)
async def list_coupons(
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    order_by: str | None = Query(default=None),
    is_active: bool | None = None,
    scope: StoreScope = Depends(get_store_scope),
) -> list[Coupon]:
    """List coupons, newest first, with an optional active filter."""
    repo = CouponRepository(scope)
    response.headers["X-Total-Count"] = str(repo.count())
    return repo.get_all(skip=skip, limit=limit, order_by=order_by, is_active=is_active)


@router.get(
    "/{coupon_id}",
    response_model=CouponResponse,
    summary="Get coupon",
    responses={
        401: {"description": "Unauthorized"},
        404: {"description": "Coupon not found"},
    },
)
async def get_coupon(
    coupon_id: UUID,
    scope: StoreScope = Depends(get_store_scope),
) -> Coupon:
    coupon = CouponRepository(scope).get_by_id(coupon_id)
    if not coupon:
        raise HTTPException(status_code=404, detail="Coupon not found")
    return coupon


@router.put(
    "/{coupon_id}",
    response_model=CouponResponse,
    summary="Update coupon",
    responses={
        400: {"description": "Invalid coupon"},
        401: {"description": "Unauthorized"},
        404: {"description": "Coupon not found"},
        409: {"description": "Coupon with this code already exists"},
    },
)
async def update_coupon(
    coupon_id: UUID,
    data: CouponUpdate,
    store: Store = Depends(get_current_store),
    scope: StoreScope = Depends(get_store_scope),
) -> Coupon:
    service = CouponService(scope, currency=str(store.currency))
    try:
        coupon = service.update_coupon(coupon_id, data)
    except DuplicateCouponCodeError as e:
        raise HTTPException(status_code=409, detail=str(e)) from None
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    if not coupon:
        raise HTTPException(status_code=404, detail="Coupon not found")
    return coupon


@router.delete(
    "/{coupon_id}",
    status_code=204,
    summary="Delete coupon",
    responses={
        401: {"description": "Unauthorized"},
        404: {"description": "Coupon not found"},
    },
)
async def delete_coupon(
    coupon_id: UUID,
    scope: StoreScope = Depends(get_store_scope),
) -> None:
    if not CouponRepository(scope).delete(coupon_id):
        raise HTTPException(status_code=404, detail="Coupon not found")
