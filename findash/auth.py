"""
Bearer token management for FinDash.

Tokens are random strings shown once at creation; only their SHA-256 hash is
stored. A valid token resolves to the identity of the user that owns it.

Token format:
  - User-visible: fd_<32-char-hex>
  - Storage: SHA-256 hash only (never plaintext)

Example:
    manager = TokenManager(db)
    token, info = await manager.create_token("user-1", "laptop", expires_in_days=90)
    identity = await manager.verify(token)  # Identity(user_id="user-1", ...)
"""

import hashlib
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from findash.config import get_config
from findash.database import Database
from findash.errors import NotFound, ValidationError

logger = logging.getLogger(__name__)

TOKEN_HEX_LENGTH = 32  # 128 bits of entropy


@dataclass(frozen=True)
class Identity:
    """The authenticated user for one request."""

    user_id: str
    token_id: str


@dataclass
class TokenInfo:
    """Metadata about a token (never includes the hash or the token itself)."""

    id: str
    user_id: str
    name: str
    expires_at: Optional[str]

    def to_dict(self) -> dict:
        return {"id": self.id, "user_id": self.user_id, "name": self.name, "expires_at": self.expires_at}


def _parse_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value).replace(tzinfo=timezone.utc)


class TokenManager:
    """Issues, verifies and revokes bearer tokens."""

    def __init__(self, db: Database | None = None, prefix: str | None = None):
        self._db = db or Database()
        self._prefix = prefix or get_config().token_prefix

    @staticmethod
    def hash_token(token: str) -> str:
        """Hash a token using SHA-256 (one-way)."""
        return hashlib.sha256(token.encode()).hexdigest()

    async def create_token(
        self,
        user_id: str,
        name: str,
        expires_in_days: int | None = None,
    ) -> tuple[str, TokenInfo]:
        """
        Create a new token for a user.

        Args:
            user_id: User the token authenticates as
            name: Human-readable label (e.g. "dashboard")
            expires_in_days: Days until expiry. None means no expiry.

        Returns:
            (token, info) where token is the plaintext value (only returned once)

        Raises:
            ValidationError: If the user id or name is empty or the expiry is not positive
        """
        if not user_id or not user_id.strip():
            raise ValidationError("user_id cannot be empty", field="user_id")
        if not name or not name.strip():
            raise ValidationError("name cannot be empty", field="name")
        if expires_in_days is not None and expires_in_days <= 0:
            raise ValidationError("expires_in_days must be > 0", field="expires_in_days")

        token = f"{self._prefix}{secrets.token_hex(TOKEN_HEX_LENGTH // 2)}"
        token_id = f"tok_{secrets.token_hex(8)}"
        expires_at = None
        if expires_in_days:
            expires_at = (datetime.now(timezone.utc) + timedelta(days=expires_in_days)).strftime("%Y-%m-%dT%H:%M:%S")

        await self._db.insert_api_token(token_id, user_id, self.hash_token(token), name, expires_at)
        await self._db.log_audit(user_id, "api_tokens", token_id, "create", new_values={"name": name})
        logger.info(f"Created API token {token_id} for user {user_id} ({name})")

        return token, TokenInfo(id=token_id, user_id=user_id, name=name, expires_at=expires_at)

    async def verify(self, token: str | None) -> Identity | None:
        """
        Resolve a token to an identity.

        Returns None if the token is missing, malformed, unknown, revoked or expired.
        """
        if not token or not token.startswith(self._prefix):
            return None

        record = await self._db.get_api_token_by_hash(self.hash_token(token))
        if record is None:
            return None
        if not record["is_active"]:
            logger.warning(f"Rejected revoked token {record['id']}")
            return None
        if record["expires_at"] and _parse_timestamp(record["expires_at"]) <= datetime.now(timezone.utc):
            logger.warning(f"Rejected expired token {record['id']}")
            return None

        await self._db.touch_api_token(record["id"])
        return Identity(user_id=record["user_id"], token_id=record["id"])

    async def revoke(self, token_id: str, user_id: str) -> None:
        """
        Revoke one of the user's tokens.

        Raises:
            NotFound: If the user has no token with this id
        """
        if not await self._db.deactivate_api_token(token_id, user_id):
            raise NotFound(f"Token {token_id} not found")
        await self._db.log_audit(user_id, "api_tokens", token_id, "delete")
        logger.info(f"Revoked API token {token_id} for user {user_id}")
