import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from storefront.core.config import settings
from storefront.core.tenancy import StoreNotConfiguredError
from storefront.routers import coupons, downloads, gift_cards, webhooks
from storefront.services.asset_signer import AssetSignerNotConfiguredError

logger = logging.getLogger(__name__)

OPENAPI_TAGS = [
    {"name": "Coupons", "description": "Validate discount codes against a cart."},
    {"name": "Gift Cards", "description": "Check gift card balances."},
    {"name": "Downloads", "description": "Redeem download links for digital products."},
    {"name": "Admin: Coupons", "description": "Create, update and delete coupons."},
    {"name": "Admin: Gift Cards", "description": "Issue, disable and resend gift cards."},
    {"name": "Webhooks", "description": "Payment processor callbacks."},
]

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.version,
    description=(
        "Storefront order value and entitlement API. "
        "Coupons, gift cards and digital download limits, partitioned by store."
    ),
    openapi_tags=OPENAPI_TAGS,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Total-Count"],
)


@app.exception_handler(StoreNotConfiguredError)
async def store_not_configured_handler(request: Request, exc: StoreNotConfiguredError) -> JSONResponse:
    return JSONResponse(status_code=503, content={"detail": "Store not configured"})


@app.exception_handler(AssetSignerNotConfiguredError)
async def asset_signer_not_configured_handler(
    request: Request, exc: AssetSignerNotConfiguredError
) -> JSONResponse:
    logger.error("Download requested but asset signing is not configured")
    return JSONResponse(status_code=503, content={"detail": "Downloads are unavailable"})


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=503, content={"detail": "Service unavailable"})


app.include_router(coupons.public_router, prefix="/v1/coupons", tags=["Coupons"])
app.include_router(gift_cards.public_router, prefix="/v1/gift_cards", tags=["Gift Cards"])
app.include_router(downloads.router, prefix="/v1/download", tags=["Downloads"])
app.include_router(coupons.router, prefix="/v1/admin/coupons", tags=["Admin: Coupons"])
app.include_router(
    gift_cards.router,
    prefix="/v1/admin/gift_cards",
    tags=["Admin: Gift Cards"],
)
app.include_router(webhooks.router, prefix="/v1/webhooks", tags=["Webhooks"])


@app.get("/")
async def root() -> dict[str, str]:
    return {
        "app": settings.APP_NAME,
        "version": settings.version,
        "domain": settings.APP_DOMAIN,
        "status": "running",
    }
