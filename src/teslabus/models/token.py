"""Authentication token model."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class AccessToken(BaseModel):
    """Token returned by the refresh-token exchange or password login.

    Parameters
    ----------
    access_token : str
        Bearer token for owner-API calls.
    expires_in : int or None
        Lifetime in seconds, when the server reports one.
    refresh_token : str or None
        Rotated refresh token, when the server returns one.
    token_type : str
        Usually ``"Bearer"``.
    raw : dict
        Full decoded response for access to additional fields.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    access_token: str = Field(min_length=1, repr=False)
    expires_in: int | None = None
    refresh_token: str | None = Field(default=None, repr=False)
    token_type: str = "Bearer"
    raw: dict[str, Any] = Field(default_factory=dict, repr=False)
