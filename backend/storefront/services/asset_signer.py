"""Time-limited signed URLs for downloadable product files."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from urllib.parse import quote

import jwt

from storefront.core.config import settings


class AssetSignerNotConfiguredError(Exception):
    """Raised when no signing secret or asset base URL is configured."""


@dataclass
class SignedAsset:
    url: str
    expires_at: datetime


class AssetSigner:
    """Issues HS256 tokens naming one asset, appended to the asset base URL."""

    TOKEN_TYPE = "asset"

    def __init__(
        self,
        secret: str | None = None,
        base_url: str | None = None,
        ttl_seconds: int | None = None,
    ):
        self.secret = secret if secret is not None else settings.ASSET_SIGNING_SECRET
        self.base_url = base_url if base_url is not None else settings.ASSET_BASE_URL
        self.ttl_seconds = ttl_seconds or settings.DOWNLOAD_URL_TTL_SECONDS

    @property
    def is_configured(self) -> bool:
        return bool(self.secret) and bool(self.base_url)

    def ensure_configured(self) -> None:
        if not self.is_configured:
            raise AssetSignerNotConfiguredError("Asset signing is not configured")

    def sign(self, locator: str, now: datetime | None = None) -> SignedAsset:
        """Return a URL for ``locator`` that stops working after the TTL."""
        self.ensure_configured()
        expires_at = (now or datetime.now(UTC)) + timedelta(seconds=self.ttl_seconds)
        payload = {
            "sub": locator,
            "type": self.TOKEN_TYPE,
            "exp": expires_at,
        }
        token = jwt.encode(payload, self.secret, algorithm="HS256")
        path = quote(locator.lstrip("/"))
        return SignedAsset(
            url=f"{self.base_url.rstrip('/')}/{path}?token={token}",
            expires_at=expires_at,
        )
