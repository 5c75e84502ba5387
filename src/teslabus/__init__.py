"""teslabus - Adaptive Tesla telemetry poller publishing to AMQP."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("teslabus")
except PackageNotFoundError:
    __version__ = "0+local"
from teslabus.auth import Authenticator, AuthStrategy
from teslabus.bus import AmqpBus, MessageBus
from teslabus.client import TeslaClient
from teslabus.config import PollerConfig
from teslabus.exceptions import (
    AuthenticationError,
    BusConnectionError,
    ConfigurationError,
    PublishError,
    TelemetryFetchError,
    TeslaBusError,
)
from teslabus.models import AccessToken, Category, FetchOptions, VehicleSummary
from teslabus.poller import ExitCode, Poller, PollerPhase, SchedulerState
from teslabus.publisher import SnapshotPublisher
from teslabus.scheduler import (
    CadenceController,
    CadenceState,
    SnapshotAssembler,
    TickOutcome,
    TickResult,
    run_bounded,
)

__all__ = [
    "__version__",
    "AccessToken",
    "AmqpBus",
    "AuthStrategy",
    "AuthenticationError",
    "Authenticator",
    "BusConnectionError",
    "CadenceController",
    "CadenceState",
    "Category",
    "ConfigurationError",
    "ExitCode",
    "FetchOptions",
    "MessageBus",
    "PollerConfig",
    "Poller",
    "PollerPhase",
    "PublishError",
    "SchedulerState",
    "SnapshotAssembler",
    "SnapshotPublisher",
    "TelemetryFetchError",
    "TeslaBusError",
    "TeslaClient",
    "TickOutcome",
    "TickResult",
    "VehicleSummary",
    "run_bounded",
]
