"""Digital download entitlements.

Each paid digital order item carries an opaque download token and a counter.
A download is granted by advancing the counter with a compare-and-swap on its
previous value, so two concurrent requests can never both take the last
remaining download. A request that loses the race without the limit being
reached is told to retry; nothing here retries on the caller's behalf.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from storefront.core.tenancy import StoreScope
from storefront.repositories.order_repository import OrderItemRepository, ProductRepository
from storefront.services.asset_signer import AssetSigner

logger = logging.getLogger(__name__)


class DownloadError(Exception):
    """Base class for refused downloads."""


class DownloadNotFoundError(DownloadError):
    def __init__(self) -> None:
        super().__init__("Download not found")


class AssetUnavailableError(DownloadError):
    def __init__(self) -> None:
        super().__init__("File not available")


class DownloadLimitReachedError(DownloadError):
    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Download limit reached ({limit} downloads)")


class DownloadRetryableError(DownloadError):
    def __init__(self) -> None:
        super().__init__("Download was requested concurrently, please try again")


@dataclass
class DownloadGrant:
    url: str
    expires_at: datetime
    download_count: int


class DownloadService:
    def __init__(self, scope: StoreScope, signer: AssetSigner | None = None):
        self.scope = scope
        self.signer = signer or AssetSigner()
        self.item_repo = OrderItemRepository(scope)
        self.product_repo = ProductRepository(scope)

    def register_download(self, token: str) -> DownloadGrant:
        """Count one download for ``token`` and return a short-lived file URL.

        Raises:
            DownloadNotFoundError: No order item in this store has the token.
            AssetUnavailableError: The product is gone or has no file.
            DownloadLimitReachedError: Every allowed download has been used.
            DownloadRetryableError: A concurrent download moved the counter first.
            AssetSignerNotConfiguredError: No URL could be signed. Raised
                before the counter is touched.
        """
        if not token:
            raise DownloadNotFoundError()

        item = self.item_repo.get_by_download_token(token)
        if item is None:
            raise DownloadNotFoundError()

        product = self.product_repo.get_by_id(item.product_id) if item.product_id else None  # type: ignore[arg-type]
        if product is None or not product.digital_file_url:
            raise AssetUnavailableError()

        self.signer.ensure_configured()

        item_id = item.id
        locator = str(product.digital_file_url)
        limit = product.download_limit
        current = int(item.download_count or 0)

        if limit is not None and current >= limit:
            raise DownloadLimitReachedError(limit)

        if not self.item_repo.increment_download_count(item_id, current):  # type: ignore[arg-type]
            latest = self.item_repo.get_download_count(item_id)  # type: ignore[arg-type]
            if limit is not None and latest is not None and latest >= limit:
                raise DownloadLimitReachedError(limit)
            logger.info("Download counter for item %s moved concurrently", item_id)
            raise DownloadRetryableError()

        signed = self.signer.sign(locator)
        logger.info(
            "Download %d%s granted for item %s",
            current + 1,
            f"/{limit}" if limit is not None else "",
            item_id,
        )
        return DownloadGrant(
            url=signed.url,
            expires_at=signed.expires_at,
            download_count=current + 1,
        )
