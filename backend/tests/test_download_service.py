"""Tests for download entitlement counting and signed asset URLs."""

import uuid
from datetime import UTC, datetime, timedelta
from unittest.mock import patch
from urllib.parse import parse_qs, urlparse

import jwt
import pytest

from storefront.core import database as db_module
from storefront.core.tenancy import StoreScope
from storefront.models.product import Product
from storefront.repositories.order_repository import OrderItemRepository, OrderRepository
from storefront.services.asset_signer import AssetSigner, AssetSignerNotConfiguredError
from storefront.services.download_service import (
    AssetUnavailableError,
    DownloadLimitReachedError,
    DownloadNotFoundError,
    DownloadRetryableError,
    DownloadService,
)

SIGNER = AssetSigner(secret="unit-test-secret", base_url="https://files.test/assets", ttl_seconds=3600)


def _decode(token):
    return jwt.decode(token, "unit-test-secret", algorithms=["HS256"])


def _make_entitlement(scope, download_limit=2, file_url="ebooks/guide.pdf", count=0):
    """Create a digital product and a paid order item for it. Returns (token, item)."""
    product = Product(
        name="Field Guide",
        price_cents=1500,
        is_digital=True,
        digital_file_url=file_url,
        download_limit=download_limit,
    )
    scope.add(product)
    scope.db.commit()

    token = uuid.uuid4().hex
    order = OrderRepository(scope).create(
        items=[
            {
                "product_id": product.id,
                "product_name": "Field Guide",
                "quantity": 1,
                "unit_price": 1500,
                "download_token": token,
                "download_count": count,
            }
        ],
        payment_session_id=f"cs_test_{uuid.uuid4().hex}",
        customer_email="buyer@example.com",
    )
    return token, order.items[0]


def _count(scope, item):
    return OrderItemRepository(scope).get_download_count(item.id)


class TestAssetSigner:
    def test_sign(self):
        now = datetime.now(UTC)
        signed = SIGNER.sign("ebooks/guide.pdf", now=now)

        parsed = urlparse(signed.url)
        assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == (
            "https://files.test/assets/ebooks/guide.pdf"
        )
        token = parse_qs(parsed.query)["token"][0]
        claims = _decode(token)
        assert claims["sub"] == "ebooks/guide.pdf"
        assert claims["type"] == "asset"
        assert signed.expires_at > now

    def test_expiry_follows_ttl(self):
        now = datetime.now(UTC)
        signed = SIGNER.sign("a.zip", now=now)
        assert signed.expires_at == now + timedelta(seconds=3600)

    def test_expired_token_rejected(self):
        signed = SIGNER.sign("a.zip", now=datetime.now(UTC) - timedelta(hours=2))
        token = parse_qs(urlparse(signed.url).query)["token"][0]
        with pytest.raises(jwt.ExpiredSignatureError):
            _decode(token)

    def test_token_from_other_secret_rejected(self):
        other = AssetSigner(secret="another-secret", base_url="https://files.test")
        token = parse_qs(urlparse(other.sign("a.zip").url).query)["token"][0]
        with pytest.raises(jwt.InvalidTokenError):
            _decode(token)

    def test_locator_is_url_quoted(self):
        signed = SIGNER.sign("/music/My Album.zip")
        assert signed.url.startswith("https://files.test/assets/music/My%20Album.zip?token=")

    def test_unconfigured(self):
        signer = AssetSigner(secret="", base_url="https://files.test")
        assert signer.is_configured is False
        with pytest.raises(AssetSignerNotConfiguredError):
            signer.sign("a.zip")


class TestRegisterDownload:
    def test_grants_signed_url_and_counts(self, scope):
        token, item = _make_entitlement(scope, download_limit=3)

        grant = DownloadService(scope, SIGNER).register_download(token)

        assert grant.download_count == 1
        assert grant.url.startswith("https://files.test/assets/ebooks/guide.pdf?token=")
        assert grant.expires_at > datetime.now(UTC)
        assert _count(scope, item) == 1

    def test_sequential_cap(self, scope):
        token, item = _make_entitlement(scope, download_limit=2)
        service = DownloadService(scope, SIGNER)

        assert service.register_download(token).download_count == 1
        assert service.register_download(token).download_count == 2
        with pytest.raises(DownloadLimitReachedError) as exc_info:
            service.register_download(token)

        assert exc_info.value.limit == 2
        assert str(exc_info.value) == "Download limit reached (2 downloads)"
        assert _count(scope, item) == 2

    def test_unlimited_when_no_limit(self, scope):
        token, item = _make_entitlement(scope, download_limit=None)
        service = DownloadService(scope, SIGNER)

        for expected in range(1, 6):
            assert service.register_download(token).download_count == expected

    def test_unknown_token(self, scope):
        with pytest.raises(DownloadNotFoundError):
            DownloadService(scope, SIGNER).register_download("no-such-token")

    def test_empty_token(self, scope):
        with pytest.raises(DownloadNotFoundError):
            DownloadService(scope, SIGNER).register_download("")

    def test_missing_asset(self, scope):
        token, item = _make_entitlement(scope, file_url=None)

        with pytest.raises(AssetUnavailableError):
            DownloadService(scope, SIGNER).register_download(token)
        assert _count(scope, item) == 0

    def test_unconfigured_signer_does_not_count(self, scope):
        token, item = _make_entitlement(scope)
        signer = AssetSigner(secret="", base_url="https://files.test")

        with pytest.raises(AssetSignerNotConfiguredError):
            DownloadService(scope, signer).register_download(token)
        assert _count(scope, item) == 0

    def test_token_from_other_store_not_found(self, scope, second_store, db_session):
        token, item = _make_entitlement(scope)
        other_scope = StoreScope(db_session, second_store.id)

        with pytest.raises(DownloadNotFoundError):
            DownloadService(other_scope, SIGNER).register_download(token)
        assert _count(scope, item) == 0


class TestConcurrentDownloads:
    """A competing request completes between this request's read and its write."""

    def _race(self, scope, token):
        original = OrderItemRepository.increment_download_count
        competitor_grants = []
        raced = []

        def racing_increment(self, item_id, expected_count):
            if not raced:
                raced.append(True)
                other_db = db_module.SessionLocal()
                try:
                    other_scope = StoreScope(other_db, scope.store_id)
                    competitor_grants.append(
                        DownloadService(other_scope, SIGNER).register_download(token)
                    )
                finally:
                    other_db.close()
            return original(self, item_id, expected_count)

        with patch.object(OrderItemRepository, "increment_download_count", racing_increment):
            try:
                return competitor_grants, DownloadService(scope, SIGNER).register_download(token)
            except (DownloadLimitReachedError, DownloadRetryableError) as e:
                return competitor_grants, e

    def test_last_download_goes_to_exactly_one_request(self, scope):
        token, item = _make_entitlement(scope, download_limit=1)

        competitor_grants, outcome = self._race(scope, token)

        assert len(competitor_grants) == 1
        assert isinstance(outcome, DownloadLimitReachedError)
        assert _count(scope, item) == 1

    def test_lost_race_below_limit_is_retryable(self, scope):
        token, item = _make_entitlement(scope, download_limit=3)

        competitor_grants, outcome = self._race(scope, token)

        assert len(competitor_grants) == 1
        assert isinstance(outcome, DownloadRetryableError)
        assert _count(scope, item) == 1

        # The caller retries and succeeds against the fresh count
        retry = DownloadService(scope, SIGNER).register_download(token)
        assert retry.download_count == 2

    def test_race_at_limit_minus_one(self, scope):
        token, item = _make_entitlement(scope, download_limit=2, count=1)

        competitor_grants, outcome = self._race(scope, token)

        assert competitor_grants[0].download_count == 2
        assert isinstance(outcome, DownloadLimitReachedError)
        assert _count(scope, item) == 2

    def test_count_never_decreases(self, scope):
        token, item = _make_entitlement(scope, download_limit=3)
        service = DownloadService(scope, SIGNER)
        seen = [_count(scope, item)]

        for _ in range(5):
            try:
                service.register_download(token)
            except DownloadLimitReachedError:
                pass
            seen.append(_count(scope, item))

        assert seen == sorted(seen)
        assert seen[-1] == 3
