"""Top-level poll loop with re-authentication and back-off recovery."""

from __future__ import annotations

import asyncio
import contextlib
import enum
import logging
from dataclasses import dataclass, field

from teslabus.auth import Authenticator
from teslabus.bus import MessageBus
from teslabus.exceptions import AuthenticationError, BusConnectionError, TeslaBusError
from teslabus.publisher import SnapshotPublisher
from teslabus.scheduler.assembler import SnapshotAssembler, TickOutcome, TickResult
from teslabus.scheduler.cadence import CadenceState

_logger = logging.getLogger(__name__)


class ExitCode(enum.IntEnum):
    """Process exit status of a poller run."""

    OK = 0
    FAILURE = 1
    REAUTH_FAILED = 2


class PollerPhase(enum.StrEnum):
    IDLE = "idle"
    AUTHENTICATING = "authenticating"
    CONNECTING = "connecting"
    POLLING = "polling"
    REAUTHENTICATING = "reauthenticating"
    BACKING_OFF = "backing_off"
    STOPPED = "stopped"


@dataclass(slots=True)
class SchedulerState:
    """State the poll loop carries across ticks."""

    cadence: CadenceState = field(default_factory=CadenceState)
    running: bool = True


class Poller:
    """Drives ticks at a fixed interval until stopped.

    Failed ticks are classified: an :class:`AuthenticationError` gets one
    re-authentication attempt (a failed attempt ends the run with
    :attr:`ExitCode.REAUTH_FAILED`), any other :class:`TeslaBusError`
    waits ``backoff_interval`` before the next tick. Anything else is an
    internal fault and stops the loop.
    """

    def __init__(
        self,
        *,
        authenticator: Authenticator,
        assembler: SnapshotAssembler,
        publisher: SnapshotPublisher,
        bus: MessageBus,
        poll_interval: float,
        backoff_interval: float,
        state: SchedulerState | None = None,
    ) -> None:
        self._authenticator = authenticator
        self._assembler = assembler
        self._publisher = publisher
        self._bus = bus
        self._poll_interval = poll_interval
        self._backoff_interval = backoff_interval
        self.state = state or SchedulerState()
        self._phase = PollerPhase.IDLE
        self._token: str | None = None
        self._wake = asyncio.Event()

    @property
    def phase(self) -> PollerPhase:
        return self._phase

    def stop(self) -> None:
        """Request a stop; an in-flight tick still finishes."""
        if self.state.running:
            _logger.info("Stop requested")
        self.state.running = False
        self._wake.set()

    async def run(self) -> ExitCode:
        """Authenticate, connect and poll until stopped."""
        try:
            return await self._run()
        finally:
            self._phase = PollerPhase.STOPPED
            try:
                await self._bus.close()
            except Exception:
                _logger.warning("Failed to close bus connection", exc_info=True)

    async def _run(self) -> ExitCode:
        self._phase = PollerPhase.AUTHENTICATING
        _logger.info("Getting Tesla auth token (%s)", self._authenticator.strategy)
        try:
            self._token = await self._authenticator.authenticate()
            _logger.info("Logged in successfully")
        except AuthenticationError as exc:
            if not self._authenticator.has_provided_token:
                _logger.error("Failed to log in: %s", exc)
                return ExitCode.FAILURE
            _logger.warning("Failed to log in, polling anyway: %s", exc)
            self._token = self._authenticator.token

        self._phase = PollerPhase.CONNECTING
        _logger.info("Connecting to service bus")
        try:
            await self._bus.connect()
            await self._publisher.declare()
        except BusConnectionError as exc:
            _logger.error("Failed to connect to AMQP: %s", exc)
            return ExitCode.FAILURE

        while self.state.running:
            self._phase = PollerPhase.POLLING
            result = await self.run_tick()
            delay = self._poll_interval

            if result.outcome is TickOutcome.FAILED:
                error = result.error
                if isinstance(error, AuthenticationError):
                    _logger.warning("Last error indicated that we're no longer authenticated, so we'll retry auth")
                    if not await self._reauthenticate():
                        return ExitCode.REAUTH_FAILED
                elif isinstance(error, TeslaBusError):
                    _logger.warning("Error running iteration (will wait and try again): %s", error)
                    self._phase = PollerPhase.BACKING_OFF
                    delay = self._backoff_interval
                else:
                    _logger.error("Unexpected fault, poller will stop", exc_info=error)
                    self.stop()
                    return ExitCode.FAILURE

            await self._sleep(delay)

        _logger.info("Run loop exited")
        return ExitCode.OK

    async def run_tick(self) -> TickResult:
        """Run one tick, turning any exception into a ``FAILED`` result."""
        try:
            return await self._assembler.tick(self.state.cadence, self._token)
        except Exception as exc:
            return TickResult(TickOutcome.FAILED, error=exc)

    async def _reauthenticate(self) -> bool:
        self._phase = PollerPhase.REAUTHENTICATING
        try:
            self._token = await self._authenticator.authenticate()
        except AuthenticationError as exc:
            _logger.error("Failed to reauthenticate: %s", exc)
            return False
        _logger.info("Reauthenticated successfully")
        return True

    async def _sleep(self, delay: float) -> None:
        if not self.state.running or delay <= 0:
            await asyncio.sleep(0)
            return
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(self._wake.wait(), timeout=delay)
