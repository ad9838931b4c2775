"""Digital download redemption endpoint."""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import RedirectResponse

from storefront.core.auth import get_store_scope
from storefront.core.tenancy import StoreScope
from storefront.services.download_service import (
    AssetUnavailableError,
    DownloadLimitReachedError,
    DownloadNotFoundError,
    DownloadRetryableError,
    DownloadService,
)

router = APIRouter()


@router.get(
    "/{token}",
    status_code=307,
    summary="Download purchased file",
    response_class=RedirectResponse,
    responses={
        307: {"description": "Redirect to a short-lived signed file URL"},
        403: {"description": "Download limit reached"},
        404: {"description": "Download or file not found"},
        409: {"description": "Concurrent download, retry"},
        503: {"description": "File signing not configured"},
    },
)
async def download(
    token: str,
    scope: StoreScope = Depends(get_store_scope),
) -> RedirectResponse:
    """Count one download against the token and redirect to the file."""
    try:
        grant = DownloadService(scope).register_download(token)
    except (DownloadNotFoundError, AssetUnavailableError) as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    except DownloadLimitReachedError as e:
        raise HTTPException(status_code=403, detail=str(e)) from None
    except DownloadRetryableError as e:
        raise HTTPException(status_code=409, detail=str(e)) from None
    return RedirectResponse(url=grant.url, status_code=307)
