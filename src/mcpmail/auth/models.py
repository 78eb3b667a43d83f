"""Credential data model.

The persisted form uses the camelCase keys written by the authorization
callback (accessToken, refreshToken, expiresAt, ...). Python code uses the
snake_case attribute names.
"""

import math
import time
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def epoch_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


class Credential(BaseModel):
    """Proof of mailbox authorization.

    Validity is never cached: call is_valid() with the current time on every use.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    access_token: str = Field(alias="accessToken", min_length=1, repr=False)
    refresh_token: str = Field(alias="refreshToken", min_length=1, repr=False)
    email: str = Field(min_length=1, description="Account email address")
    name: str | None = Field(default=None, description="Display name")
    picture: str | None = Field(default=None, description="Avatar URL")
    expires_at: int = Field(alias="expiresAt", gt=0, description="Absolute expiry in epoch milliseconds")
    created_at: int | None = Field(default=None, alias="createdAt")

    @field_validator("expires_at", mode="before")
    @classmethod
    def _require_number(cls, value: Any) -> Any:
        # JSON booleans and numeric strings are not expiry instants
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("expiresAt must be a number")
        if not math.isfinite(value):
            raise ValueError("expiresAt must be finite")
        return int(value)

    def is_expired(self, now_ms: int) -> bool:
        return now_ms >= self.expires_at

    def is_valid(self, now_ms: int) -> bool:
        """Check required fields and that expiry is strictly in the future."""
        return bool(self.access_token and self.refresh_token and self.email) and not self.is_expired(now_ms)

    def expires_in_seconds(self, now_ms: int) -> int:
        """Seconds left before expiry (0 once expired)."""
        return max(0, (self.expires_at - now_ms) // 1000)

    def to_record(self) -> str:
        """Serialize to the persisted JSON record."""
        return self.model_dump_json(by_alias=True, exclude_none=True)
