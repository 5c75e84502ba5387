"""Access-token acquisition for the poller."""

from __future__ import annotations

import enum
import logging

from teslabus._api.auth import exchange_refresh_token, password_login
from teslabus._transport import Transport
from teslabus.config import PollerConfig
from teslabus.exceptions import ConfigurationError

_logger = logging.getLogger(__name__)


class AuthStrategy(enum.StrEnum):
    """How the access token is obtained, in order of precedence."""

    REFRESH_TOKEN = "refresh_token"
    TOKEN = "token"
    PASSWORD = "password"


def select_strategy(config: PollerConfig) -> AuthStrategy:
    if config.refresh_token:
        return AuthStrategy.REFRESH_TOKEN
    if config.token:
        return AuthStrategy.TOKEN
    if config.username and config.password:
        return AuthStrategy.PASSWORD
    raise ConfigurationError("No Tesla credentials configured")


class Authenticator:
    """Obtains and re-obtains the owner-API access token.

    The same :meth:`authenticate` call serves the startup login and the
    re-authentication after an unauthorized tick.
    """

    def __init__(self, config: PollerConfig, transport: Transport) -> None:
        self._config = config
        self._transport = transport
        self._strategy = select_strategy(config)
        self._refresh_token = config.refresh_token
        self._token: str | None = config.token if self._strategy is AuthStrategy.TOKEN else None

    @property
    def strategy(self) -> AuthStrategy:
        return self._strategy

    @property
    def token(self) -> str | None:
        """The last access token obtained, if any."""
        return self._token

    @property
    def has_provided_token(self) -> bool:
        """Whether a token or refresh token was configured up front.

        Startup login failures are tolerated in that case; the first
        unauthorized tick triggers a new attempt.
        """
        return self._strategy is not AuthStrategy.PASSWORD

    async def authenticate(self) -> str:
        """Return a usable access token.

        Raises
        ------
        AuthenticationError
            The refresh-token exchange or the password login failed.
        """
        if self._strategy is AuthStrategy.TOKEN:
            assert self._token is not None  # noqa: S101
            return self._token

        if self._strategy is AuthStrategy.REFRESH_TOKEN:
            assert self._refresh_token is not None  # noqa: S101
            access = await exchange_refresh_token(self._transport, self._refresh_token)
            if access.refresh_token and access.refresh_token != self._refresh_token:
                _logger.debug("Refresh token rotated by the auth server")
                self._refresh_token = access.refresh_token
        else:
            assert self._config.username and self._config.password  # noqa: S101
            access = await password_login(
                self._transport,
                self._config.owner_api_url,
                self._config.username,
                self._config.password,
            )

        self._token = access.access_token
        return self._token
