"""Gift card balance lookup and gift card administration endpoints."""

from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Response

from storefront.core.auth import (
    check_validation_rate_limit,
    get_current_store,
    get_store_scope,
    require_admin,
)
from storefront.core.currency import format_cents
from storefront.core.tenancy import StoreScope
from storefront.models.gift_card import GiftCard, GiftCardStatus
from storefront.models.store import Store
from storefront.repositories.gift_card_repository import GiftCardRepository
from storefront.schemas.gift_card import (
    GiftCardBalance,
    GiftCardDetailResponse,
    GiftCardIssueRequest,
    GiftCardResponse,
    GiftCardStatusUpdate,
    GiftCardTransactionResponse,
    GiftCardValidateRequest,
    GiftCardValidateResponse,
)
from storefront.services.gift_card_delivery import deliver_gift_card_email
from storefront.services.gift_card_service import GiftCardService

public_router = APIRouter()
router = APIRouter(dependencies=[Depends(require_admin)])


@public_router.post(
    "/validate",
    response_model=GiftCardValidateResponse,
    summary="Validate gift card",
    responses={
        404: {"description": "Store not found"},
        422: {"description": "Validation error"},
        429: {"description": "Rate limit exceeded"},
    },
)
async def validate_gift_card(
    data: GiftCardValidateRequest,
    store: Store = Depends(check_validation_rate_limit),
    scope: StoreScope = Depends(get_store_scope),
) -> GiftCardValidateResponse:
    """Look up a gift card and how much of the cart it would cover."""
    service = GiftCardService(scope)
    try:
        result = service.validate(data.code)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None

    if not result.valid or result.gift_card is None:
        return GiftCardValidateResponse(valid=False, error=result.reason)

    gift_card = result.gift_card
    currency = str(store.currency)
    applicable = service.compute_applicable_amount(gift_card, data.cart_total_cents)
    return GiftCardValidateResponse(
        valid=True,
        gift_card=GiftCardBalance(
            code=str(gift_card.code),
            balance=int(gift_card.current_balance),
            balance_formatted=format_cents(int(gift_card.current_balance), currency),
            applicable_amount=applicable,
            applicable_amount_formatted=format_cents(applicable, currency),
        ),
    )


@router.post(
    "/",
    response_model=GiftCardResponse,
    status_code=201,
    summary="Issue gift card",
    responses={
        400: {"description": "Invalid amount or email"},
        401: {"description": "Unauthorized"},
        422: {"description": "Validation error"},
    },
)
async def issue_gift_card(
    data: GiftCardIssueRequest,
    background_tasks: BackgroundTasks,
    store: Store = Depends(get_current_store),
    scope: StoreScope = Depends(get_store_scope),
) -> GiftCard:
    """Issue a gift card manually. The delivery email is sent after the response."""
    try:
        gift_card = GiftCardService(scope).issue(
            amount=data.amount,
            recipient_email=data.recipient_email,
            recipient_name=data.recipient_name,
            sender_name=str(store.name),
            message=data.note,
            send_email=data.send_email,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None

    if data.send_email:
        background_tasks.add_task(deliver_gift_card_email, scope.store_id, gift_card.id)
    return gift_card


@router.get(
    "/",
    response_model=list[GiftCardResponse],
    summary="List gift cards",
    responses={401: {"description": "Unauthorized"}},
)
async def list_gift_cards(
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    order_by: str | None = Query(default=None),
    status: GiftCardStatus | None = None,
    scope: StoreScope = Depends(get_store_scope),
) -> list[GiftCard]:
    repo = GiftCardRepository(scope)
    response.headers["X-Total-Count"] = str(repo.count())
    return repo.get_all(skip=skip, limit=limit, order_by=order_by, status=status)


@router.get(
    "/{gift_card_id}",
    response_model=GiftCardDetailResponse,
    summary="Get gift card",
    responses={
        401: {"description": "Unauthorized"},
        404: {"description": "Gift card not found"},
    },
)
async def get_gift_card(
    gift_card_id: UUID,
    scope: StoreScope = Depends(get_store_scope),
) -> GiftCardDetailResponse:
    """Get a gift card with its redemption history."""
    found = GiftCardService(scope).get_with_transactions(gift_card_id)
    if found is None:
        raise HTTPException(status_code=404, detail="Gift card not found")
    gift_card, transactions = found
    return GiftCardDetailResponse(
        gift_card=GiftCardResponse.model_validate(gift_card),
        transactions=[GiftCardTransactionResponse.model_validate(t) for t in transactions],
    )


@router.patch(
    "/{gift_card_id}",
    response_model=GiftCardResponse,
    summary="Enable or disable gift card",
    responses={
        400: {"description": "Cannot enable an exhausted gift card"},
        401: {"description": "Unauthorized"},
        404: {"description": "Gift card not found"},
    },
)
async def update_gift_card_status(
    gift_card_id: UUID,
    data: GiftCardStatusUpdate,
    scope: StoreScope = Depends(get_store_scope),
) -> GiftCard:
    try:
        gift_card = GiftCardService(scope).set_status(gift_card_id, data.status)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    if gift_card is None:
        raise HTTPException(status_code=404, detail="Gift card not found")
    return gift_card


@router.post(
    "/{gift_card_id}/resend",
    status_code=202,
    summary="Resend gift card email",
    responses={
        401: {"description": "Unauthorized"},
        404: {"description": "Gift card not found"},
    },
)
async def resend_gift_card_email(
    gift_card_id: UUID,
    background_tasks: BackgroundTasks,
    scope: StoreScope = Depends(get_store_scope),
) -> dict[str, str]:
    gift_card = GiftCardRepository(scope).get_by_id(gift_card_id)
    if gift_card is None:
        raise HTTPException(status_code=404, detail="Gift card not found")
    background_tasks.add_task(deliver_gift_card_email, scope.store_id, gift_card.id)
    return {"status": "queued"}
