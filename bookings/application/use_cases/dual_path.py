from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from bookings.application.dto.create_series import CreateSeriesCommand, CreateSeriesResult
from bookings.application.exceptions import BookingError, TransportError
from bookings.application.ports.series_function import SeriesFunctionPort
from bookings.application.use_cases.create_series import CreateSeriesUseCase


class ExecutionState(str, Enum):
    idle = "idle"
    primary = "primary"
    fallback = "fallback"
    succeeded = "succeeded"
    failed = "failed"


@dataclass(frozen=True)
class Attempt:
    path: str  # "remote" | "direct"
    error: BookingError | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


# state -> states it may move to
_TRANSITIONS: dict[ExecutionState, frozenset[ExecutionState]] = {
    ExecutionState.idle: frozenset({ExecutionState.primary, ExecutionState.fallback}),
    ExecutionState.primary: frozenset({ExecutionState.succeeded, ExecutionState.failed, ExecutionState.fallback}),
    ExecutionState.fallback: frozenset({ExecutionState.succeeded, ExecutionState.failed}),
    ExecutionState.succeeded: frozenset(),
    ExecutionState.failed: frozenset(),
}


@dataclass
class DualPathExecution:
    """Record of one logical create request. Each path runs at most once, in order."""

    state: ExecutionState = ExecutionState.idle
    attempts: list[Attempt] = field(default_factory=list)

    def move(self, target: ExecutionState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal execution transition {self.state.value} -> {target.value}")
        self.state = target

    def record(self, path: str, error: BookingError | None = None) -> None:
        self.attempts.append(Attempt(path=path, error=error))

    @property
    def primary_error(self) -> BookingError | None:
        for attempt in self.attempts:
            if attempt.path == "remote":
                return attempt.error
        return None


class CreateSeriesStrategy:
    """
    Create a series through the remote function, falling back to the direct store path.

    Only transport-level failures of the remote call (timeouts, connection errors,
    CORS or gateway rejections) move the execution to the fallback. Declared
    application errors from the remote function are raised as-is. When both paths
    fail the direct path's error is raised with the remote error chained as its cause.
    """

    def __init__(self, direct: CreateSeriesUseCase, remote: SeriesFunctionPort | None = None) -> None:
        self._direct = direct
        self._remote = remote
        self._logger = logging.getLogger(__name__)
        self.last_execution: DualPathExecution | None = None

    def execute(self, command: CreateSeriesCommand) -> CreateSeriesResult:
        execution = DualPathExecution()
        self.last_execution = execution

        if self._remote is not None:
            execution.move(ExecutionState.primary)
            result = self._run_primary(execution, command)
            if result is not None:
                return result
        else:
            self._logger.info("Remote function not configured, using direct path", extra={"path": "direct"})

        execution.move(ExecutionState.fallback)
        return self._run_fallback(execution, command)

    def _run_primary(self, execution: DualPathExecution, command: CreateSeriesCommand) -> CreateSeriesResult | None:
        try:
            result = self._remote.create_series(command)
        except TransportError as e:
            execution.record("remote", e)
            self._logger.warning(
                "Remote booking function unreachable, falling back to direct path",
                extra={"path": "remote", "error": repr(e), "lead_id": command.lead_id},
            )
            return None
        except BookingError as e:
            execution.record("remote", e)
            execution.move(ExecutionState.failed)
            self._logger.info(
                "Remote booking function rejected request",
                extra={"path": "remote", "error": str(e), "status": e.classification},
            )
            raise

        execution.record("remote")
        execution.move(ExecutionState.succeeded)
        return result

    def _run_fallback(self, execution: DualPathExecution, command: CreateSeriesCommand) -> CreateSeriesResult:
        try:
            result = self._direct.execute(command)
        except BookingError as e:
            execution.record("direct", e)
            execution.move(ExecutionState.failed)
            primary = execution.primary_error
            if primary is not None:
                self._logger.error(
                    "Both booking paths failed",
                    extra={"path": "direct", "error": repr(e), "remote_error": repr(primary)},
                )
                raise e from primary
            raise

        execution.record("direct")
        execution.move(ExecutionState.succeeded)
        return result
