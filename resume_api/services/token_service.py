"""Access/refresh token issuance and sliding-window rotation.

Each user has exactly one valid refresh token: the value stored in
``User.current_refresh_token``. Issuing a new pair overwrites it, which
invalidates every refresh token handed out before.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from resume_api.auth.jwt_handler import (
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
)
from resume_api.config import Settings
from resume_api.models.user import User
from resume_api.repositories.user_repository import UserRepository
from resume_api.utils.time import (
    access_refresh_threshold,
    refresh_rotation_threshold,
    refresh_token_lifetime,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


class TokenService:
    def __init__(self, user_repository: UserRepository, settings: Settings):
        self.users = user_repository
        self.settings = settings

    @property
    def access_threshold_seconds(self) -> float:
        return access_refresh_threshold(self.settings.jwt_expires_in)

    @property
    def refresh_threshold_seconds(self) -> float:
        return refresh_rotation_threshold(self.settings.jwt_refresh_expires_in)

    @property
    def refresh_lifetime_seconds(self) -> int:
        return refresh_token_lifetime(self.settings.jwt_refresh_expires_in)

    async def issue_token_pair(self, user: User) -> TokenPair:
        """Mint a fresh pair and persist the refresh token, replacing the previous one."""
        pair = TokenPair(
            access_token=create_access_token(str(user.id), user.email),
            refresh_token=create_refresh_token(str(user.id), user.email),
        )
        await self.users.update_refresh_token(user, pair.refresh_token)
        await self.users.commit()
        return pair

    async def revoke(self, user: User) -> None:
        await self.users.update_refresh_token(user, None)
        await self.users.commit()

    async def validate_and_refresh(
        self,
        user_id: UUID,
        presented_refresh_token: str,
        now: Optional[datetime] = None,
    ) -> Optional[TokenPair]:
        """Exchange a refresh token for new credentials, or return None.

        Once the refresh token has used up half its lifetime the whole pair is
        rotated. Before that only a new access token is minted and the
        presented refresh token is handed back unchanged.
        """
        payload = decode_refresh_token(presented_refresh_token)
        if payload is None or payload.get("sub") != str(user_id):
            return None

        user = await self.users.get_by_id(user_id)
        if user is None or user.current_refresh_token != presented_refresh_token:
            logger.info("Refresh token for user %s is not the active one", user_id)
            return None

        now = now or datetime.now(timezone.utc)
        time_until_expiry = payload["exp"] - now.timestamp()

        if time_until_expiry <= self.refresh_threshold_seconds:
            logger.info("Rotating refresh token for user %s", user_id)
            return await self.issue_token_pair(user)

        return TokenPair(
            access_token=create_access_token(str(user.id), user.email),
            refresh_token=presented_refresh_token,
        )

    def should_refresh_access(self, exp: Optional[float], now: Optional[datetime] = None) -> bool:
        """True when an access token expiring at ``exp`` is inside its refresh window."""
        if not exp:
            return False
        now = now or datetime.now(timezone.utc)
        return exp - now.timestamp() < self.access_threshold_seconds
