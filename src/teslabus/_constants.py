"""Tesla API endpoints, client identifiers and timing defaults."""

from __future__ import annotations

OWNER_API_URL = "https://owner-api.teslamotors.com"
AUTH_TOKEN_URL = "https://auth.tesla.com/oauth2/v3/token/"

#: OAuth client id accepted by the SSO refresh-token grant.
SSO_CLIENT_ID = "ownerapi"

#: Public owner-API client credentials used by the legacy password grant.
OWNER_API_CLIENT_ID = "81527cff06843c8634fdc09e8ac0abefb46ac849f38fe1e431c2ef2106796384"
OWNER_API_CLIENT_SECRET = "c7257eb71a564034f9419ee651c7d0e5f7aa6bfbd18bafb5c5c033b093bb2fa3"

USER_AGENT = "teslabus/1.0"

JSON_CONTENT_TYPE = "application/json"

DEFAULT_POLL_INTERVAL: float = 30.0
DEFAULT_BACKOFF_INTERVAL: float = 60.0
DEFAULT_FETCH_TIMEOUT: float = 30.0

#: Vehicle states in which no category besides the summary can be read.
ASLEEP_STATUS = "asleep"

#: Gear reported while parked; any other shift state means the car is moving.
PARK_SHIFT_STATE = "P"
