"""
Tests for the start-poll-parse lifecycle in brandscope.runner.
"""

import asyncio

import httpx
import pytest

from brandscope.client import BrandscopeClient
from brandscope.exceptions import (
    BatchFailedError,
    BatchStartError,
    BatchTimeoutError,
    MissingResultError,
)
from brandscope.models import BatchExecution
from brandscope.runner import BatchRunner
from brandscope.settings import Settings
from brandscope.status import BatchStatus, ResultType
from tests.mocks.backend import FakeBackend, make_backend_transport
from tests.mocks.payloads import final_results


def _runner(backend: FakeBackend, *, max_poll_attempts: int = 30) -> BatchRunner:
    """
    Create a runner polling the fake backend without delay.

    Parameters
    ----------
    backend : FakeBackend
        Fake backend answering requests.
    max_poll_attempts : int
        Poll budget.

    Returns
    -------
    BatchRunner
        Configured runner.
    """
    transport = make_backend_transport(backend)
    client = BrandscopeClient(
        settings=Settings(api_url="http://testserver/api/admin"),
        client_factory=lambda: httpx.AsyncClient(transport=transport),
    )
    return BatchRunner(client, poll_interval_seconds=0, max_poll_attempts=max_poll_attempts)


def test_runner_defaults_come_from_settings():
    client = BrandscopeClient(settings=Settings(poll_interval_seconds=5, max_poll_attempts=3))
    assert BatchRunner(client).max_poll_attempts == 3


@pytest.mark.parametrize(
    "kwargs", [{"max_poll_attempts": 0}, {"poll_interval_seconds": -1}]
)
def test_runner_rejects_invalid_budget(kwargs):
    client = BrandscopeClient(settings=Settings())
    with pytest.raises(ValueError):
        BatchRunner(client, **kwargs)


@pytest.mark.asyncio
async def test_run_completes_after_a_few_polls():
    backend = FakeBackend(polls_until_done=3)
    polls: list[tuple[int, BatchStatus]] = []

    def on_poll(attempt: int, execution: BatchExecution) -> None:
        polls.append((attempt, execution.status))

    batch_run = await _runner(backend).run("project_1", on_poll=on_poll)

    assert batch_run.batch_execution_id == "exec_1"
    assert batch_run.execution.status is BatchStatus.COMPLETED
    assert polls == [
        (1, BatchStatus.RUNNING),
        (2, BatchStatus.RUNNING),
        (3, BatchStatus.COMPLETED),
    ]
    assert backend.paths() == [
        "POST /batch/process/project_1",
        "GET /batch-executions/exec_1",
        "GET /batch-executions/exec_1",
        "GET /batch-executions/exec_1",
    ]
    assert batch_run.results.available == list(ResultType)
    assert batch_run.results.visibility is not None
    assert batch_run.results.visibility.summary is not None
    assert batch_run.results.visibility.summary.mention_rate == 0.5


@pytest.mark.asyncio
async def test_run_accepts_object_results_with_legacy_names():
    backend = FakeBackend(results=final_results(as_text=False, legacy_names=True))
    batch_run = await _runner(backend).run("project_1")
    assert batch_run.results.get("spontaneous") == batch_run.results.visibility
    assert batch_run.results.competition is not None


@pytest.mark.asyncio
async def test_run_polls_the_already_running_execution():
    backend = FakeBackend(
        start_payload={"success": True, "alreadyRunning": True, "batchExecutionId": "exec_5"}
    )
    batch_run = await _runner(backend).run("project_1")
    assert batch_run.already_running
    assert batch_run.batch_execution_id == "exec_5"
    assert backend.paths()[-1] == "GET /batch-executions/exec_5"


@pytest.mark.asyncio
async def test_run_times_out():
    backend = FakeBackend(polls_until_done=100)
    with pytest.raises(BatchTimeoutError) as exc_info:
        await _runner(backend, max_poll_attempts=4).run("project_1")
    assert exc_info.value.attempts == 4
    assert backend.poll_count == 4


@pytest.mark.asyncio
async def test_run_fails_on_failed_status():
    backend = FakeBackend(
        polls_until_done=2, final_status="failed", error_message="LLM quota exceeded"
    )
    with pytest.raises(BatchFailedError, match="Batch execution failed: LLM quota exceeded"):
        await _runner(backend).run("project_1")
    assert backend.poll_count == 2


@pytest.mark.asyncio
async def test_run_fails_without_error_message():
    backend = FakeBackend(final_status="failed")
    with pytest.raises(BatchFailedError) as exc_info:
        await _runner(backend).run("project_1")
    assert exc_info.value.message == "Batch execution failed"
    assert exc_info.value.batch_execution_id == "exec_1"


@pytest.mark.asyncio
async def test_run_does_not_poll_when_start_is_refused():
    backend = FakeBackend(start_payload={"success": False, "error": "Project not found"})
    with pytest.raises(BatchStartError, match="Project not found"):
        await _runner(backend).run("project_1")
    assert backend.poll_count == 0


@pytest.mark.asyncio
async def test_run_requires_full_batch_results():
    only_alignment = [item for item in final_results() if item["resultType"] == "alignment"]
    backend = FakeBackend(results=only_alignment)
    with pytest.raises(MissingResultError) as exc_info:
        await _runner(backend).run("project_1")
    assert exc_info.value.missing == ["visibility", "sentiment", "competition"]


@pytest.mark.asyncio
async def test_run_single_pipeline():
    only_alignment = [item for item in final_results() if item["resultType"] == "alignment"]
    backend = FakeBackend(results=only_alignment)
    batch_run = await _runner(backend).run("project_1", pipeline="accuracy")
    assert backend.paths()[0] == "POST /batch/pipeline/accuracy/project_1"
    assert batch_run.results.available == [ResultType.ALIGNMENT]


@pytest.mark.asyncio
async def test_fetch_results_of_completed_execution():
    backend = FakeBackend()
    batch_run = await _runner(backend).fetch_results("exec_1", required=["sentiment"])
    assert backend.poll_count == 1
    assert batch_run.results.sentiment is not None
    assert batch_run.results.sentiment.summary is not None
    assert batch_run.results.sentiment.summary.overall_sentiment == "positive"


@pytest.mark.asyncio
async def test_fetch_results_waits_for_running_execution():
    backend = FakeBackend(polls_until_done=3)
    batch_run = await _runner(backend).fetch_results("exec_1")
    assert backend.poll_count == 3
    assert batch_run.execution.status is BatchStatus.COMPLETED


@pytest.mark.asyncio
async def test_wait_sleeps_the_configured_interval_before_each_poll(monkeypatch):
    delays: list[float] = []

    async def fake_sleep(delay: float) -> None:
        delays.append(delay)

    monkeypatch.setattr(asyncio, "sleep", fake_sleep)
    backend = FakeBackend(polls_until_done=3)
    transport = make_backend_transport(backend)
    client = BrandscopeClient(
        settings=Settings(api_url="http://testserver/api/admin"),
        client_factory=lambda: httpx.AsyncClient(transport=transport),
    )
    execution = await BatchRunner(client).wait("exec_1")
    assert execution.status is BatchStatus.COMPLETED
    assert delays == [10.0, 10.0, 10.0]
    assert backend.poll_count == 3


@pytest.mark.asyncio
async def test_fetch_results_of_failed_execution_does_not_poll():
    backend = FakeBackend(final_status="failed", error_message="LLM quota exceeded")
    with pytest.raises(BatchFailedError, match="LLM quota exceeded"):
        await _runner(backend).fetch_results("exec_1")
    assert backend.poll_count == 1
    assert backend.paths() == ["GET /batch-executions/exec_1"]
