from __future__ import annotations

from enum import Enum

from pydantic import Field

from tabsync.core.time_utils import now_ms

from ._base import WireModel


class AuthProvider(str, Enum):
    GOOGLE = "google"
    GITHUB = "github"


class AuthTokens(WireModel):
    """OAuth tokens as handed over by the sign-in flow.

    Only shape and expiry are checked here; the exchange itself happens elsewhere.
    """

    access_token: str
    refresh_token: str | None = None
    expires_at: int
    scopes: list[str] = Field(default_factory=list)
    provider: AuthProvider

    def is_expired(self, now: int | None = None) -> bool:
        return self.expires_at < (now_ms() if now is None else now)
