"""Token endpoints.

Endpoints:
  - https://auth.tesla.com/oauth2/v3/token/ (refresh-token grant)
  - {owner_api}/oauth/token (legacy password grant)
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from teslabus._constants import (
    AUTH_TOKEN_URL,
    OWNER_API_CLIENT_ID,
    OWNER_API_CLIENT_SECRET,
    SSO_CLIENT_ID,
)
from teslabus._redact import redact_for_log
from teslabus._transport import Transport
from teslabus.exceptions import AuthenticationError, TeslaBusError
from teslabus.models.token import AccessToken

_logger = logging.getLogger(__name__)


def parse_token_response(response: Any, *, endpoint: str) -> AccessToken:
    """Validate a token endpoint response.

    Raises
    ------
    AuthenticationError
        The response carries an ``error`` or no ``access_token``.
    """
    if not isinstance(response, dict):
        raise AuthenticationError(f"{endpoint} returned a non-object token response")
    if response.get("error"):
        raise AuthenticationError(f"Login Error: {response.get('error_description') or response['error']}")
    try:
        return AccessToken.model_validate({**response, "raw": response})
    except ValidationError as exc:
        _logger.debug("Unexpected token response: %s", redact_for_log(response))
        raise AuthenticationError(f"{endpoint} returned no access token") from exc


async def exchange_refresh_token(transport: Transport, refresh_token: str) -> AccessToken:
    """Exchange a refresh token for a fresh access token."""
    form = {
        "grant_type": "refresh_token",
        "client_id": SSO_CLIENT_ID,
        "refresh_token": refresh_token,
    }
    try:
        response = await transport.post_form(AUTH_TOKEN_URL, form)
    except AuthenticationError:
        raise
    except TeslaBusError as exc:
        raise AuthenticationError(f"Refresh token exchange failed: {exc}") from exc

    token = parse_token_response(response, endpoint=AUTH_TOKEN_URL)
    _logger.info("Received access token which will expire in %s seconds", token.expires_in)
    return token


async def password_login(
    transport: Transport,
    owner_api_url: str,
    username: str,
    password: str,
) -> AccessToken:
    """Log in with account credentials using the owner-API password grant."""
    endpoint = f"{owner_api_url}/oauth/token"
    payload = {
        "grant_type": "password",
        "client_id": OWNER_API_CLIENT_ID,
        "client_secret": OWNER_API_CLIENT_SECRET,
        "email": username,
        "password": password,
    }
    try:
        response = await transport.post_json(endpoint, payload)
    except AuthenticationError:
        raise
    except TeslaBusError as exc:
        raise AuthenticationError(f"Login failed: {exc}") from exc

    token = parse_token_response(response, endpoint=endpoint)
    _logger.info("Login successful")
    return token
