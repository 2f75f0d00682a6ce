"""
Tests for remote-first series creation with direct fallback.
"""

from __future__ import annotations

from itertools import count

import pytest

from bookings.application.dto.create_series import CreateSeriesCommand, CreateSeriesResult
from bookings.application.exceptions import (
    NotFoundError,
    PersistenceError,
    RemoteTimeoutError,
    TransportError,
    ValidationError,
)
from bookings.application.ports.series_function import SeriesFunctionPort
from bookings.application.use_cases.create_series import CreateSeriesUseCase
from bookings.application.use_cases.dual_path import CreateSeriesStrategy, DualPathExecution, ExecutionState
from bookings.domain.entities.lead import Lead
from bookings.infrastructure.store.memory_store import MemoryBookingStore, MemoryLeadStore


class ScriptedRemote(SeriesFunctionPort):
    """Remote function double: raises `error` or delegates to a direct use case on its own store."""

    def __init__(self, error=None, backend: CreateSeriesUseCase | None = None):
        self.error = error
        self.backend = backend
        self.calls = 0

    def create_series(self, command):
        self.calls += 1
        if self.error is not None:
            raise self.error
        result = self.backend.execute(command)
        return CreateSeriesResult(
            series=result.series,
            occurrences_created=result.occurrences_created,
            lead_status_updated=result.lead_status_updated,
            path="remote",
        )


def _direct(leads=None):
    counter = count(1)
    store = MemoryBookingStore()
    leads = leads if leads is not None else MemoryLeadStore([Lead(id="lead-1", name="Jane")])
    return CreateSeriesUseCase(store=store, leads=leads, id_factory=lambda: f"id-{next(counter)}"), store


def _command(lead_id="lead-1"):
    return CreateSeriesCommand.from_payload(
        lead_id=lead_id,
        starts_at="2025-03-10T09:00:00",
        repeat_type="fortnightly",
        occurrence_count=3,
    )


def test_remote_success_skips_direct_path():
    remote_uc, remote_store = _direct()
    direct, direct_store = _direct()
    strategy = CreateSeriesStrategy(direct=direct, remote=ScriptedRemote(backend=remote_uc))

    result = strategy.execute(_command())

    assert result.path == "remote"
    assert result.occurrences_created == 3
    assert direct_store.get_series("id-1") is None
    assert strategy.last_execution.state == ExecutionState.succeeded
    assert [a.path for a in strategy.last_execution.attempts] == ["remote"]


def test_timeout_falls_back_to_direct_path():
    direct, store = _direct()
    remote = ScriptedRemote(error=RemoteTimeoutError("Booking function timed out after 30s"))
    strategy = CreateSeriesStrategy(direct=direct, remote=remote)

    result = strategy.execute(_command())

    assert result.path == "direct"
    assert store.get_series(result.series.id) is not None
    attempts = strategy.last_execution.attempts
    assert [a.path for a in attempts] == ["remote", "direct"]
    assert isinstance(attempts[0].error, RemoteTimeoutError)
    assert attempts[1].succeeded


def test_timeout_then_lead_not_found_surfaces_application_error():
    """Scenario: primary times out, fallback says the lead is missing -> caller sees NotFoundError."""
    direct, store = _direct(leads=MemoryLeadStore())
    remote = ScriptedRemote(error=RemoteTimeoutError("Booking function timed out after 30s"))
    strategy = CreateSeriesStrategy(direct=direct, remote=remote)

    with pytest.raises(NotFoundError, match="Lead not found") as exc_info:
        strategy.execute(_command())

    assert isinstance(exc_info.value.__cause__, RemoteTimeoutError)
    assert strategy.last_execution.state == ExecutionState.failed
    assert store.get_series("id-1") is None


@pytest.mark.parametrize(
    "error",
    [
        ValidationError("durationMinutes must be greater than zero"),
        NotFoundError("Lead not found"),
        PersistenceError("duplicate key value"),
    ],
)
def test_declared_remote_errors_do_not_fall_back(error):
    direct, store = _direct()
    strategy = CreateSeriesStrategy(direct=direct, remote=ScriptedRemote(error=error))

    with pytest.raises(type(error)):
        strategy.execute(_command())

    assert store.get_series("id-1") is None
    assert [a.path for a in strategy.last_execution.attempts] == ["remote"]


def test_connection_error_falls_back():
    direct, _ = _direct()
    strategy = CreateSeriesStrategy(direct=direct, remote=ScriptedRemote(error=TransportError("Failed to fetch")))

    assert strategy.execute(_command()).path == "direct"


def test_without_remote_goes_straight_to_direct():
    direct, _ = _direct()
    strategy = CreateSeriesStrategy(direct=direct, remote=None)

    result = strategy.execute(_command())

    assert result.path == "direct"
    assert [a.path for a in strategy.last_execution.attempts] == ["direct"]


def test_each_path_runs_at_most_once():
    direct, _ = _direct()
    remote = ScriptedRemote(error=TransportError("Failed to fetch"))
    strategy = CreateSeriesStrategy(direct=direct, remote=remote)

    strategy.execute(_command())

    assert remote.calls == 1


def test_execution_rejects_going_backwards():
    execution = DualPathExecution()
    execution.move(ExecutionState.primary)
    execution.move(ExecutionState.fallback)

    with pytest.raises(RuntimeError):
        execution.move(ExecutionState.primary)
