from datetime import UTC, datetime
from uuid import UUID

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from storefront.core.config import settings
from storefront.core.database import get_db
from storefront.core.rate_limiter import validation_rate_limiter
from storefront.core.tenancy import StoreNotConfiguredError, StoreScope
from storefront.models.admin_token import AdminToken
from storefront.models.store import Store
from storefront.repositories.admin_token_repository import AdminTokenRepository, hash_admin_token
from storefront.repositories.store_repository import StoreRepository


def resolve_store(raw_store_id: str | None, db: Session) -> Store:
    """Load the store named by ``raw_store_id``, falling back to the STORE_ID setting.

    Raises StoreNotConfiguredError when neither is set.
    """
    candidate = (raw_store_id or settings.STORE_ID or "").strip()
    if not candidate:
        raise StoreNotConfiguredError("Store not configured")

    try:
        store_id = UUID(candidate)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid store id") from None

    store = StoreRepository(db).get_by_id(store_id)
    if store is None:
        raise HTTPException(status_code=404, detail="Store not found")
    return store


def get_current_store(request: Request, db: Session = Depends(get_db)) -> Store:
    return resolve_store(request.headers.get("X-Store-Id"), db)


def get_store_scope(
    store: Store = Depends(get_current_store),
    db: Session = Depends(get_db),
) -> StoreScope:
    return StoreScope(db, store.id)  # type: ignore[arg-type]


def require_admin(
    request: Request,
    scope: StoreScope = Depends(get_store_scope),
) -> AdminToken:
    """Validate the bearer admin token against the resolved store."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Admin token is required")

    raw_token = auth_header[7:].strip()
    if not raw_token:
        raise HTTPException(status_code=401, detail="Admin token is required")

    repo = AdminTokenRepository(scope)
    token = repo.get_by_hash(hash_admin_token(raw_token))
    if token is None:
        raise HTTPException(status_code=401, detail="Invalid admin token")

    if token.status == "revoked":
        raise HTTPException(status_code=401, detail="Admin token has been revoked")

    if token.expires_at and token.expires_at.replace(tzinfo=None) < datetime.now(UTC).replace(
        tzinfo=None
    ):
        raise HTTPException(status_code=401, detail="Admin token has expired")

    repo.update_last_used(token, datetime.now(UTC))
    return token


def check_validation_rate_limit(
    request: Request, store: Store = Depends(get_current_store)
) -> Store:
    """Throttle public code lookups per client and store."""
    client = request.client.host if request.client else "unknown"
    if not validation_rate_limiter.is_allowed(f"{store.id}:{client}"):
        raise HTTPException(
            status_code=429,
            detail="Rate limit exceeded. Maximum "
            f"{settings.RATE_LIMIT_VALIDATIONS_PER_MINUTE} validations per minute.",
        )
    return store
