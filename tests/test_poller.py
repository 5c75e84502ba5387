from __future__ import annotations

import asyncio
from typing import Any

import pytest

from teslabus.auth import AuthStrategy
from teslabus.exceptions import AuthenticationError, PublishError, TelemetryFetchError
from teslabus.poller import ExitCode, Poller, PollerPhase, SchedulerState
from teslabus.scheduler.assembler import SnapshotAssembler, TickOutcome, TickResult
from teslabus.scheduler.cadence import CadenceController, CadenceState


class _FakeAuthenticator:
    def __init__(self, results: list[Any], *, strategy: AuthStrategy = AuthStrategy.REFRESH_TOKEN) -> None:
        self._results = list(results)
        self.strategy = strategy
        self.token: str | None = None
        self.calls = 0

    @property
    def has_provided_token(self) -> bool:
        return self.strategy is not AuthStrategy.PASSWORD

    async def authenticate(self) -> str:
        self.calls += 1
        result = self._results.pop(0)
        if isinstance(result, Exception):
            raise result
        self.token = result
        return result


class _ScriptedAssembler:
    """Plays back one step per tick, stopping the poller when exhausted."""

    def __init__(self, steps: list[Any]) -> None:
        self._steps = list(steps)
        self.poller: Poller | None = None
        self.tokens: list[str | None] = []

    async def tick(self, state: CadenceState, auth_token: str | None) -> TickResult:
        self.tokens.append(auth_token)
        step = self._steps.pop(0)
        if not self._steps:
            assert self.poller is not None
            self.poller.stop()
        if isinstance(step, BaseException):
            raise step
        return TickResult(TickOutcome.SKIPPED)


class _StopAfter:
    """Delegates to a real assembler and stops the poller after ``ticks`` ticks."""

    def __init__(self, assembler: SnapshotAssembler, *, ticks: int) -> None:
        self._assembler = assembler
        self._remaining = ticks
        self.poller: Poller | None = None
        self.results: list[TickResult] = []

    async def tick(self, state: CadenceState, auth_token: str | None) -> TickResult:
        self._remaining -= 1
        if self._remaining == 0:
            assert self.poller is not None
            self.poller.stop()
        try:
            result = await self._assembler.tick(state, auth_token)
        except Exception as exc:
            self.results.append(TickResult(TickOutcome.FAILED, error=exc))
            raise
        self.results.append(result)
        return result


def _poller(authenticator, assembler, publisher, fake_bus, **kwargs: Any) -> Poller:  # noqa: ANN001
    poller = Poller(
        authenticator=authenticator,
        assembler=assembler,
        publisher=publisher,
        bus=fake_bus,
        poll_interval=kwargs.pop("poll_interval", 0),
        backoff_interval=kwargs.pop("backoff_interval", 0),
        **kwargs,
    )
    if isinstance(assembler, _ScriptedAssembler):
        assembler.poller = poller
    return poller


def _record_sleeps(poller: Poller) -> list[tuple[float, PollerPhase]]:
    delays: list[tuple[float, PollerPhase]] = []

    async def fake_sleep(delay: float) -> None:
        delays.append((delay, poller.phase))

    poller._sleep = fake_sleep  # type: ignore[method-assign]
    return delays


@pytest.mark.asyncio
async def test_runs_ticks_until_stopped(publisher, fake_bus) -> None:
    auth = _FakeAuthenticator(["token-1"])
    assembler = _ScriptedAssembler(["ok", "ok", "ok"])
    poller = _poller(auth, assembler, publisher, fake_bus)

    assert await poller.run() is ExitCode.OK

    assert assembler.tokens == ["token-1"] * 3
    assert fake_bus.connected
    assert fake_bus.declared == [("tesla", "topic", True)]
    assert fake_bus.closed
    assert poller.phase is PollerPhase.STOPPED
    assert poller.state.running is False


@pytest.mark.asyncio
async def test_auth_failure_triggers_exactly_one_reauthentication(publisher, fake_bus) -> None:
    auth = _FakeAuthenticator(["token-1", "token-2"])
    assembler = _ScriptedAssembler([AuthenticationError("HTTP 401"), "ok"])
    poller = _poller(auth, assembler, publisher, fake_bus, poll_interval=30, backoff_interval=60)
    delays = _record_sleeps(poller)

    assert await poller.run() is ExitCode.OK

    assert auth.calls == 2
    assert assembler.tokens == ["token-1", "token-2"]
    assert delays[0] == (30, PollerPhase.REAUTHENTICATING)


@pytest.mark.asyncio
async def test_failed_reauthentication_exits_with_reauth_status(publisher, fake_bus) -> None:
    auth = _FakeAuthenticator(["token-1", AuthenticationError("refresh token revoked")])
    assembler = _ScriptedAssembler([AuthenticationError("HTTP 401"), "never reached"])
    poller = _poller(auth, assembler, publisher, fake_bus)

    assert await poller.run() is ExitCode.REAUTH_FAILED
    assert ExitCode.REAUTH_FAILED == 2

    assert auth.calls == 2
    assert assembler.tokens == ["token-1"]
    assert fake_bus.closed


@pytest.mark.asyncio
async def test_transient_failure_backs_off_and_continues(publisher, fake_bus) -> None:
    auth = _FakeAuthenticator(["token-1"])
    assembler = _ScriptedAssembler([TelemetryFetchError("HTTP 408", category="drive_state"), "ok"])
    poller = _poller(auth, assembler, publisher, fake_bus, poll_interval=30, backoff_interval=60)
    delays = _record_sleeps(poller)

    assert await poller.run() is ExitCode.OK

    assert auth.calls == 1
    assert delays == [(60, PollerPhase.BACKING_OFF), (30, PollerPhase.POLLING)]


@pytest.mark.asyncio
async def test_negative_ack_backs_off_and_next_tick_publishes(publisher, fake_bus, telemetry) -> None:
    fake_bus.acks = [False, True]
    auth = _FakeAuthenticator(["token-1"])
    assembler = _StopAfter(
        SnapshotAssembler(
            telemetry.get_vehicle_summary,
            telemetry.category_fetchers(),
            publisher,
            CadenceController(0),
        ),
        ticks=2,
    )
    poller = _poller(auth, assembler, publisher, fake_bus, poll_interval=30, backoff_interval=60)
    assembler.poller = poller
    delays = _record_sleeps(poller)

    assert await poller.run() is ExitCode.OK

    assert [r.outcome for r in assembler.results] == [TickOutcome.FAILED, TickOutcome.PUBLISHED]
    assert isinstance(assembler.results[0].error, PublishError)
    assert len(fake_bus.published) == 2
    assert delays == [(60, PollerPhase.BACKING_OFF), (30, PollerPhase.POLLING)]


@pytest.mark.asyncio
async def test_publish_error_in_loop_does_not_stop_polling(publisher, fake_bus) -> None:
    auth = _FakeAuthenticator(["token-1"])
    assembler = _ScriptedAssembler([PublishError("nack"), "ok", "ok"])
    poller = _poller(auth, assembler, publisher, fake_bus, backoff_interval=5)
    delays = _record_sleeps(poller)

    assert await poller.run() is ExitCode.OK
    assert len(assembler.tokens) == 3
    assert delays[0] == (5, PollerPhase.BACKING_OFF)


@pytest.mark.asyncio
async def test_password_login_failure_is_fatal(publisher, fake_bus) -> None:
    auth = _FakeAuthenticator([AuthenticationError("Login Error: bad password")], strategy=AuthStrategy.PASSWORD)
    assembler = _ScriptedAssembler(["never reached"])
    poller = _poller(auth, assembler, publisher, fake_bus)

    assert await poller.run() is ExitCode.FAILURE
    assert assembler.tokens == []
    assert not fake_bus.connected


@pytest.mark.asyncio
async def test_provided_token_tolerates_startup_login_failure(publisher, fake_bus) -> None:
    auth = _FakeAuthenticator([AuthenticationError("auth server down")])
    assembler = _ScriptedAssembler(["ok"])
    poller = _poller(auth, assembler, publisher, fake_bus)

    assert await poller.run() is ExitCode.OK
    assert assembler.tokens == [None]


@pytest.mark.asyncio
async def test_bus_connection_failure_is_fatal(publisher, fake_bus) -> None:
    fake_bus.fail_connect = True
    auth = _FakeAuthenticator(["token-1"])
    assembler = _ScriptedAssembler(["never reached"])
    poller = _poller(auth, assembler, publisher, fake_bus)

    assert await poller.run() is ExitCode.FAILURE
    assert assembler.tokens == []
    assert fake_bus.declared == []


@pytest.mark.asyncio
async def test_unexpected_fault_stops_the_loop(publisher, fake_bus) -> None:
    auth = _FakeAuthenticator(["token-1"])
    assembler = _ScriptedAssembler([KeyError("bug"), "never reached"])
    poller = _poller(auth, assembler, publisher, fake_bus)

    assert await poller.run() is ExitCode.FAILURE
    assert assembler.tokens == ["token-1"]
    assert poller.state.running is False


@pytest.mark.asyncio
async def test_stop_wakes_pending_delay(publisher, fake_bus) -> None:
    auth = _FakeAuthenticator(["token-1"])
    ticked = asyncio.Event()

    class _Assembler:
        async def tick(self, state: CadenceState, auth_token: str | None) -> TickResult:
            ticked.set()
            return TickResult(TickOutcome.SKIPPED)

    poller = _poller(auth, _Assembler(), publisher, fake_bus, poll_interval=3600)
    task = asyncio.create_task(poller.run())
    await ticked.wait()

    poller.stop()

    assert await asyncio.wait_for(task, timeout=1.0) is ExitCode.OK


@pytest.mark.asyncio
async def test_cadence_state_persists_across_ticks(publisher, fake_bus, telemetry) -> None:
    state = SchedulerState(cadence=CadenceState(iteration_index=0, is_driving=False))
    auth = _FakeAuthenticator(["token-1"])
    assembler = SnapshotAssembler(
        telemetry.get_vehicle_summary,
        telemetry.category_fetchers(),
        publisher,
        CadenceController(4),
    )
    poller = _poller(auth, assembler, publisher, fake_bus, state=state)

    for _ in range(3):
        await poller.run_tick()

    assert state.cadence.iteration_index == 3
    assert telemetry.fetched_categories == ["drive_state", "vehicle_state", "charge_state", "climate_state"]
