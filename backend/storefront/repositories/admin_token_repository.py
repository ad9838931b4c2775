import hashlib
import secrets
from datetime import datetime

from storefront.core.tenancy import StoreScope
from storefront.models.admin_token import AdminToken


def generate_admin_token() -> str:
    """Generate a random admin bearer token with an 'sfa_' prefix."""
    return "sfa_" + secrets.token_hex(32)


def hash_admin_token(raw_token: str) -> str:
    """SHA-256 hash of the raw token; only the hash is stored."""
    return hashlib.sha256(raw_token.encode()).hexdigest()


class AdminTokenRepository:
    def __init__(self, scope: StoreScope):
        self.scope = scope
        self.db = scope.db

    def create(
        self, name: str | None = None, expires_at: datetime | None = None
    ) -> tuple[AdminToken, str]:
        """Create a token. Returns (model, raw_token); the raw token is not persisted."""
        raw_token = generate_admin_token()
        token = AdminToken(
            token_hash=hash_admin_token(raw_token),
            token_prefix=raw_token[:12],
            name=name,
            expires_at=expires_at,
        )
        self.scope.add(token)
        self.db.commit()
        self.db.refresh(token)
        return token, raw_token

    def get_by_hash(self, token_hash: str) -> AdminToken | None:
        return self.scope.query(AdminToken).filter(AdminToken.token_hash == token_hash).first()

    def revoke(self, token: AdminToken) -> AdminToken:
        token.status = "revoked"  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(token)
        return token

    def update_last_used(self, token: AdminToken, now: datetime) -> None:
        token.last_used_at = now  # type: ignore[assignment]
        self.db.commit()
