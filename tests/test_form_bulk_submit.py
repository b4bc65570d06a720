from __future__ import annotations

import asyncio
from urllib.parse import parse_qsl

import httpx
import pytest

from eloqua_toolbox.contracts.form_bulk_submit import (
    BulkSubmitResult,
    SubmissionOptions,
    SubmissionTarget,
    ValidationReport,
)
from eloqua_toolbox.services import form_bulk_submit
from eloqua_toolbox.services.csv_ingestion import parse_csv
from eloqua_toolbox.services.form_bulk_submit import (
    FormBulkSubmitJob,
    JobState,
    run_bulk_submission,
    validate_submission,
)

TARGET = SubmissionTarget(site_id="100", form_name="X")


def _options(**overrides) -> SubmissionOptions:
    values = {
        "request_timeout_seconds": 5,
        "delay_between_batches_ms": 0,
        "max_concurrent_requests": 5,
    }
    values.update(overrides)
    return SubmissionOptions(**values)


def _rows(count: int) -> list[dict[str, str]]:
    return [{"n": str(i + 1), "email": f"user{i + 1}@example.com"} for i in range(count)]


def _body(request: httpx.Request) -> dict[str, str]:
    return dict(parse_qsl(request.content.decode()))


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, text="ok")


@pytest.mark.asyncio
async def test_all_rows_succeed_for_simple_csv():
    rows = parse_csv("a,b\n1,2\n3,4")

    async with _client(_ok) as client:
        result = await FormBulkSubmitJob(rows=rows, target=TARGET, options=_options(), client=client).run()

    assert result.status == "completed"
    assert len(result.results) == 2
    assert result.summary.success_rate == 100.0
    assert result.summary.total_rows == 2
    assert all(outcome.status_code == 200 for outcome in result.results)
    assert result.error is None


@pytest.mark.asyncio
async def test_results_keep_input_order_regardless_of_completion_order():
    rows = _rows(7)

    async def handler(request: httpx.Request) -> httpx.Response:
        # Earlier rows answer last.
        await asyncio.sleep((8 - int(_body(request)["n"])) * 0.005)
        return httpx.Response(200, text="ok")

    async with _client(handler) as client:
        result = await FormBulkSubmitJob(
            rows=rows,
            target=TARGET,
            options=_options(max_concurrent_requests=3),
            client=client,
        ).run()

    assert result.summary.total_rows == len(result.results) == len(rows)
    for index, outcome in enumerate(result.results):
        assert outcome.row_number == index + 1
        assert outcome.data == rows[index]


@pytest.mark.asyncio
async def test_in_flight_requests_never_exceed_max_concurrent():
    in_flight = {"current": 0, "max": 0, "calls": 0}

    async def handler(request: httpx.Request) -> httpx.Response:
        in_flight["calls"] += 1
        in_flight["current"] += 1
        in_flight["max"] = max(in_flight["max"], in_flight["current"])
        await asyncio.sleep(0.01)
        in_flight["current"] -= 1
        return httpx.Response(200)

    async with _client(handler) as client:
        result = await FormBulkSubmitJob(
            rows=_rows(10),
            target=TARGET,
            options=_options(max_concurrent_requests=3),
            client=client,
        ).run()

    assert in_flight["calls"] == 10
    assert in_flight["max"] == 3
    assert result.summary.successful_requests == 10


@pytest.mark.asyncio
async def test_next_batch_waits_for_slowest_row_of_previous_batch():
    events: list[tuple[str, str]] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        row_id = _body(request)["n"]
        events.append(("start", row_id))
        await asyncio.sleep(0.05 if row_id == "1" else 0.0)
        events.append(("end", row_id))
        return httpx.Response(200)

    async with _client(handler) as client:
        await FormBulkSubmitJob(
            rows=_rows(3),
            target=TARGET,
            options=_options(max_concurrent_requests=2),
            client=client,
        ).run()

    assert events.index(("start", "3")) > events.index(("end", "1"))
    assert events.index(("start", "2")) < events.index(("end", "1"))


@pytest.mark.asyncio
async def test_progress_is_reported_after_each_batch():
    calls: list[tuple[int, int, str]] = []

    async with _client(_ok) as client:
        await FormBulkSubmitJob(
            rows=_rows(5),
            target=TARGET,
            options=_options(max_concurrent_requests=2),
            client=client,
        ).run(lambda processed, total, message: calls.append((processed, total, message)))

    assert calls == [
        (2, 5, "Processed 2/5 rows (40%)"),
        (4, 5, "Processed 4/5 rows (80%)"),
        (5, 5, "Processed 5/5 rows (100%)"),
    ]


@pytest.mark.asyncio
async def test_delay_is_applied_only_between_batches(monkeypatch: pytest.MonkeyPatch):
    sleep_calls: list[float] = []

    async def _mock_sleep(delay: float) -> None:
        sleep_calls.append(delay)

    monkeypatch.setattr(form_bulk_submit.asyncio, "sleep", _mock_sleep)

    async with _client(_ok) as client:
        await FormBulkSubmitJob(
            rows=_rows(5),
            target=TARGET,
            options=_options(max_concurrent_requests=2, delay_between_batches_ms=250),
            client=client,
        ).run()

    assert sleep_calls == [0.25, 0.25]


@pytest.mark.asyncio
async def test_stagger_delays_rows_after_the_first_in_each_batch(monkeypatch: pytest.MonkeyPatch):
    sleep_calls: list[float] = []

    async def _mock_sleep(delay: float) -> None:
        sleep_calls.append(delay)

    monkeypatch.setattr(form_bulk_submit.asyncio, "sleep", _mock_sleep)

    async with _client(_ok) as client:
        await FormBulkSubmitJob(
            rows=_rows(3),
            target=TARGET,
            options=_options(max_concurrent_requests=3, stagger_delay_ms=100),
            client=client,
        ).run()

    assert sorted(sleep_calls) == [0.1, 0.2]


@pytest.mark.asyncio
async def test_transport_failures_are_reported_per_row():
    def handler(request: httpx.Request) -> httpx.Response:
        if _body(request)["n"] in {"2", "4"}:
            raise httpx.ConnectError("name resolution failed", request=request)
        return httpx.Response(200)

    async with _client(handler) as client:
        result = await FormBulkSubmitJob(
            rows=_rows(5),
            target=TARGET,
            options=_options(max_concurrent_requests=2),
            client=client,
        ).run()

    assert result.status == "completed"
    assert [outcome.success for outcome in result.results] == [True, False, True, False, True]
    assert result.summary.failed_requests == 2
    assert result.summary.success_rate == 60.0


@pytest.mark.asyncio
async def test_raising_submission_becomes_failed_outcome(monkeypatch: pytest.MonkeyPatch):
    original_submit_row = form_bulk_submit.submit_row

    async def _flaky_submit_row(client, *, row, row_number, target, timeout_seconds):
        if row_number == 2:
            raise RuntimeError("boom")
        return await original_submit_row(
            client, row=row, row_number=row_number, target=target, timeout_seconds=timeout_seconds
        )

    monkeypatch.setattr(form_bulk_submit, "submit_row", _flaky_submit_row)

    async with _client(_ok) as client:
        result = await FormBulkSubmitJob(rows=_rows(3), target=TARGET, options=_options(), client=client).run()

    assert result.status == "completed"
    assert result.results[1].row_number == 2
    assert result.results[1].success is False
    assert result.results[1].error == "Submission task failed: RuntimeError: boom"
    assert result.results[1].data == _rows(3)[1]
    assert result.summary.failed_requests == 1


@pytest.mark.asyncio
async def test_cancel_event_stops_job_at_batch_boundary():
    cancel_event = asyncio.Event()

    async with _client(_ok) as client:
        job = FormBulkSubmitJob(
            rows=_rows(6),
            target=TARGET,
            options=_options(max_concurrent_requests=2),
            client=client,
            cancel_event=cancel_event,
        )
        result = await job.run(lambda processed, total, message: cancel_event.set())

    assert job.state is JobState.CANCELLED
    assert result.status == "cancelled"
    assert [outcome.row_number for outcome in result.results] == [1, 2]
    assert result.summary.total_rows == 2


@pytest.mark.asyncio
async def test_cancel_before_start_returns_no_results():
    cancel_event = asyncio.Event()
    cancel_event.set()
    calls = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        return httpx.Response(200)

    async with _client(handler) as client:
        result = await FormBulkSubmitJob(
            rows=_rows(3),
            target=TARGET,
            options=_options(),
            client=client,
            cancel_event=cancel_event,
        ).run()

    assert result.status == "cancelled"
    assert result.results == []
    assert result.summary is None
    assert calls["count"] == 0


@pytest.mark.asyncio
async def test_internal_error_fails_job_with_partial_results():
    def _progress(processed: int, total: int, message: str) -> None:
        if processed > 2:
            raise RuntimeError("progress sink exploded")

    async with _client(_ok) as client:
        job = FormBulkSubmitJob(
            rows=_rows(5),
            target=TARGET,
            options=_options(max_concurrent_requests=2),
            client=client,
        )
        result = await job.run(_progress)

    assert job.state is JobState.FAILED
    assert result.status == "failed"
    assert result.error == "progress sink exploded"
    assert result.summary is None
    assert [outcome.row_number for outcome in result.results] == [1, 2, 3, 4]


@pytest.mark.asyncio
async def test_empty_row_list_fails_on_aggregation():
    async with _client(_ok) as client:
        result = await FormBulkSubmitJob(rows=[], target=TARGET, options=_options(), client=client).run()

    assert result.status == "failed"
    assert result.results == []
    assert "empty result set" in result.error


@pytest.mark.asyncio
async def test_job_can_only_run_once():
    async with _client(_ok) as client:
        job = FormBulkSubmitJob(rows=_rows(1), target=TARGET, options=_options(), client=client)
        await job.run()

        assert job.state is JobState.COMPLETED
        with pytest.raises(RuntimeError, match="already been started"):
            await job.run()


@pytest.mark.asyncio
async def test_job_closes_the_client_it_creates(monkeypatch: pytest.MonkeyPatch):
    client = _client(_ok)
    monkeypatch.setattr(form_bulk_submit, "new_form_client", lambda **_: client)

    result = await FormBulkSubmitJob(rows=_rows(2), target=TARGET, options=_options()).run()

    assert result.status == "completed"
    assert client.is_closed


@pytest.mark.asyncio
async def test_validate_only_performs_no_network_io():
    calls = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        return httpx.Response(200)

    rows = _rows(5)
    async with _client(handler) as client:
        report = await run_bulk_submission(rows, TARGET, _options(validate_only=True), client=client)

    assert isinstance(report, ValidationReport)
    assert report.total_rows == 5
    assert report.valid_rows == 5
    assert len(report.sample_requests) == 3
    assert report.sample_requests[0].endswith("?elqFormName=X&elqSiteID=100&n=1&email=user1%40example.com")
    assert calls["count"] == 0


def test_validate_submission_is_deterministic():
    rows = _rows(4)

    assert validate_submission(rows, TARGET) == validate_submission(rows, TARGET)


@pytest.mark.asyncio
async def test_run_bulk_submission_submits_when_not_validate_only():
    async with _client(_ok) as client:
        result = await run_bulk_submission(_rows(2), TARGET, _options(), client=client)

    assert isinstance(result, BulkSubmitResult)
    assert result.status == "completed"
    assert result.timestamp


@pytest.mark.asyncio
async def test_cancelling_the_running_task_marks_job_cancelled(monkeypatch: pytest.MonkeyPatch):
    started = asyncio.Event()

    async def handler(request: httpx.Request) -> httpx.Response:
        started.set()
        await asyncio.Event().wait()
        return httpx.Response(200)

    client = _client(handler)
    monkeypatch.setattr(form_bulk_submit, "new_form_client", lambda **_: client)
    job = FormBulkSubmitJob(rows=_rows(2), target=TARGET, options=_options(request_timeout_seconds=30))

    task = asyncio.create_task(job.run())
    await started.wait()
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert job.state is JobState.CANCELLED
    assert client.is_closed
