"""
Start-poll-parse lifecycle of a backend batch execution.
The backend runs the pipelines in the background; the runner only starts the
execution, polls its status at a fixed interval and parses the final results.
"""

from __future__ import annotations

import asyncio
import typing as t
from dataclasses import dataclass

import structlog

from brandscope.client import BrandscopeClient
from brandscope.exceptions import BatchFailedError, BatchTimeoutError
from brandscope.models import BatchExecution
from brandscope.results import BatchProcessResults, parse_batch_results
from brandscope.status import FULL_BATCH_RESULT_TYPES, BatchStatus, ResultType
from brandscope.utils.logging import logging_context

log = structlog.get_logger(__name__)

PollCallback = t.Callable[[int, BatchExecution], None]


def _failed_error(execution: BatchExecution) -> BatchFailedError:
    message = "Batch execution failed"
    if execution.error_message:
        message = f"{message}: {execution.error_message}"
    return BatchFailedError(message, batch_execution_id=execution.id)


@dataclass
class BatchRun:
    """Outcome of a completed batch execution."""

    batch_execution_id: str
    execution: BatchExecution
    results: BatchProcessResults
    already_running: bool = False


class BatchRunner:
    """
    Start a batch execution and poll it until it completes or fails.

    Polling happens every ``poll_interval_seconds`` for at most
    ``max_poll_attempts`` attempts; there is no backoff and no retry of
    partial results.
    """

    def __init__(
        self,
        client: BrandscopeClient,
        poll_interval_seconds: float | None = None,
        max_poll_attempts: int | None = None,
    ):
        """
        Initialize the runner.

        Parameters
        ----------
        client : BrandscopeClient
            Backend client.
        poll_interval_seconds : float | None
            Delay between two status polls; defaults to the client settings.
        max_poll_attempts : int | None
            Poll budget; defaults to the client settings.
        """
        self._client = client
        self._poll_interval_seconds = (
            client.settings.poll_interval_seconds
            if poll_interval_seconds is None
            else poll_interval_seconds
        )
        self._max_poll_attempts = (
            client.settings.max_poll_attempts if max_poll_attempts is None else max_poll_attempts
        )
        if self._max_poll_attempts <= 0:
            raise ValueError("max_poll_attempts must be a positive integer")
        if self._poll_interval_seconds < 0:
            raise ValueError("poll_interval_seconds cannot be negative")

    @property
    def max_poll_attempts(self) -> int:
        return self._max_poll_attempts

    async def wait(
        self,
        batch_execution_id: str,
        *,
        on_poll: PollCallback | None = None,
    ) -> BatchExecution:
        """
        Poll a batch execution until it reaches a terminal status.

        Parameters
        ----------
        batch_execution_id : str
            Execution to poll.
        on_poll : PollCallback | None
            Called with the attempt number and the polled execution after each poll.

        Returns
        -------
        BatchExecution
            The completed execution.

        Raises
        ------
        BatchFailedError
            If the execution status becomes ``failed``.
        BatchTimeoutError
            If the execution is still running after ``max_poll_attempts`` polls.
        """
        log.info(
            event="Polling batch execution",
            batch_execution_id=batch_execution_id,
            poll_interval_seconds=self._poll_interval_seconds,
            max_poll_attempts=self._max_poll_attempts,
        )
        for attempt in range(1, self._max_poll_attempts + 1):
            await asyncio.sleep(delay=self._poll_interval_seconds)
            execution = await self._client.get_batch_execution(batch_execution_id)
            log.debug(
                event="Batch poll tick",
                batch_execution_id=batch_execution_id,
                attempt=attempt,
                status=execution.status.value,
                results=len(execution.final_results),
            )
            if on_poll is not None:
                on_poll(attempt, execution)

            if execution.status is BatchStatus.FAILED:
                log.error(
                    event="Batch execution failed",
                    batch_execution_id=batch_execution_id,
                    error=execution.error_message,
                )
                raise _failed_error(execution)
            if execution.status is BatchStatus.COMPLETED:
                log.info(
                    event="Batch execution completed",
                    batch_execution_id=batch_execution_id,
                    attempts=attempt,
                )
                return execution

        log.warning(
            event="Batch execution poll budget exhausted",
            batch_execution_id=batch_execution_id,
            attempts=self._max_poll_attempts,
        )
        raise BatchTimeoutError(
            batch_execution_id=batch_execution_id, attempts=self._max_poll_attempts
        )

    async def run(
        self,
        project_id: str,
        *,
        pipeline: ResultType | str | None = None,
        required: t.Iterable[ResultType | str] | None = None,
        on_poll: PollCallback | None = None,
    ) -> BatchRun:
        """
        Start a batch execution for a project and wait for its parsed results.

        Parameters
        ----------
        project_id : str
            Project / identity card to analyse.
        pipeline : ResultType | str | None
            Run a single pipeline instead of the full batch.
        required : typing.Iterable[ResultType | str] | None
            Pipelines that must be present in the final results. Defaults to
            the single ``pipeline`` when given, else visibility, sentiment and
            competition.
        on_poll : PollCallback | None
            Forwarded to :meth:`wait`.

        Returns
        -------
        BatchRun
            Execution and parsed pipeline results.
        """
        with logging_context(project_id=project_id):
            if pipeline is None:
                start_response = await self._client.start_batch(project_id)
                required_pipelines = (
                    list(FULL_BATCH_RESULT_TYPES) if required is None else list(required)
                )
            else:
                single = ResultType.parse(pipeline)
                start_response = await self._client.start_pipeline(single, project_id)
                required_pipelines = [single] if required is None else list(required)

            batch_execution_id = t.cast(str, start_response.batch_execution_id)
            if start_response.already_running:
                log.info(
                    event="Batch execution already running, polling existing one",
                    batch_execution_id=batch_execution_id,
                )

            with logging_context(batch_execution_id=batch_execution_id):
                execution = await self.wait(batch_execution_id, on_poll=on_poll)
                results = parse_batch_results(execution, required=required_pipelines)
        return BatchRun(
            batch_execution_id=batch_execution_id,
            execution=execution,
            results=results,
            already_running=start_response.already_running,
        )

    async def fetch_results(
        self,
        batch_execution_id: str,
        *,
        required: t.Iterable[ResultType | str] = (),
    ) -> BatchRun:
        """Parse the results of an execution that is already completed."""
        execution = await self._client.get_batch_execution(batch_execution_id)
        if execution.status is BatchStatus.FAILED:
            raise _failed_error(execution)
        if execution.status is not BatchStatus.COMPLETED:
            execution = await self.wait(batch_execution_id)
        return BatchRun(
            batch_execution_id=batch_execution_id,
            execution=execution,
            results=parse_batch_results(execution, required=required),
        )
