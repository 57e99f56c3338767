"""
Unit tests for JobRunner and the job state machine.

Tests cover:
- next_action decision table
- Polling a scripted state sequence to completion
- Terminal failure states raising JobFailedError
- Bounded retry of transient describe errors
- Overall deadline expiry
"""

from datetime import datetime, timezone

import pytest

from brewflow.src.batch.job_runner import JobRunner, PollAction, next_action
from brewflow.src.errors import InfrastructureError, JobFailedError, WorkflowTimeoutError
from brewflow.src.models import Deadline, ExecutionWindow, JobState

WINDOW = ExecutionWindow(
    start=datetime(2024, 4, 30, tzinfo=timezone.utc),
    end=datetime(2024, 5, 1, tzinfo=timezone.utc),
)


class TestNextAction:
    """Tests for the transition function."""

    @pytest.mark.parametrize(
        "state",
        [JobState.STARTING, JobState.WAITING, JobState.RUNNING, JobState.STOPPING],
    )
    def test_in_flight_states_wait(self, state):
        assert next_action(state) is PollAction.WAIT

    def test_succeeded_proceeds(self):
        assert next_action(JobState.SUCCEEDED) is PollAction.PROCEED

    @pytest.mark.parametrize(
        "state",
        [JobState.FAILED, JobState.TIMEOUT, JobState.STOPPED, None],
    )
    def test_other_states_fail(self, state):
        assert next_action(state) is PollAction.FAIL


class TestSubmit:
    """Tests for JobRunner.submit."""

    def test_returns_starting_run_scoped_to_window(self, make_job_service, fake_clock):
        service = make_job_service(["SUCCEEDED"], run_id="db_123")
        runner = JobRunner(service, sleep=fake_clock.sleep)

        run = runner.submit(WINDOW)

        assert run.id == "db_123"
        assert run.state is JobState.STARTING
        assert run.dataset_window is WINDOW
        assert service.started == 1


class TestWaitForCompletion:
    """Tests for JobRunner.wait_for_completion."""

    def test_polls_until_succeeded(self, make_job_service, fake_clock):
        service = make_job_service(["STARTING", "RUNNING", "RUNNING", "SUCCEEDED"])
        runner = JobRunner(service, poll_interval=30, sleep=fake_clock.sleep)

        run = runner.run(WINDOW)

        assert run.state is JobState.SUCCEEDED
        assert service.describe_calls == 4
        assert fake_clock.sleeps == [30, 30, 30, 30]

    def test_waits_before_first_status_check(self, make_job_service, fake_clock):
        service = make_job_service(["SUCCEEDED"])
        runner = JobRunner(service, poll_interval=30, sleep=fake_clock.sleep)

        runner.run(WINDOW)

        assert fake_clock.sleeps == [30]
        assert service.describe_calls == 1

    def test_waiting_and_stopping_rearm_the_wait(self, make_job_service, fake_clock):
        service = make_job_service(["WAITING", "STOPPING", "SUCCEEDED"])
        runner = JobRunner(service, poll_interval=5, sleep=fake_clock.sleep)

        runner.run(WINDOW)

        assert service.describe_calls == 3

    @pytest.mark.parametrize("terminal", ["FAILED", "TIMEOUT", "STOPPED", "SOMETHING_NEW"])
    def test_terminal_failure_raises_with_state(self, make_job_service, fake_clock, terminal):
        service = make_job_service(["STARTING", "RUNNING", terminal])
        runner = JobRunner(service, sleep=fake_clock.sleep)

        with pytest.raises(JobFailedError) as exc_info:
            runner.run(WINDOW)

        assert exc_info.value.state == terminal
        assert exc_info.value.run_id == service.run_id
        assert terminal in str(exc_info.value)

    def test_unknown_state_keeps_raw_value(self, make_job_service, fake_clock):
        service = make_job_service(["CANCELLED"])
        runner = JobRunner(service, sleep=fake_clock.sleep)
        run = runner.submit(WINDOW)

        with pytest.raises(JobFailedError):
            runner.wait_for_completion(run)

        assert run.state is None
        assert run.raw_state == "CANCELLED"

    def test_never_cancels_the_job(self, make_job_service, fake_clock):
        service = make_job_service(["FAILED"])
        runner = JobRunner(service, sleep=fake_clock.sleep)

        with pytest.raises(JobFailedError):
            runner.run(WINDOW)

        assert service.stopped == []


class TestDescribeRetries:
    """Tests for bounded retry of transient describe errors."""

    def test_transient_error_is_retried(self, make_job_service, fake_clock):
        service = make_job_service(
            ["RUNNING", InfrastructureError("throttled"), "SUCCEEDED"]
        )
        runner = JobRunner(service, describe_max_attempts=3, sleep=fake_clock.sleep)

        run = runner.run(WINDOW)

        assert run.state is JobState.SUCCEEDED
        assert service.describe_calls == 3

    def test_escalates_after_max_attempts(self, make_job_service, fake_clock):
        service = make_job_service([InfrastructureError("unreachable")])
        runner = JobRunner(service, describe_max_attempts=3, sleep=fake_clock.sleep)

        with pytest.raises(InfrastructureError):
            runner.run(WINDOW)

        assert service.describe_calls == 3

    def test_single_attempt_escalates_immediately(self, make_job_service, fake_clock):
        service = make_job_service([InfrastructureError("unreachable")])
        runner = JobRunner(service, describe_max_attempts=1, sleep=fake_clock.sleep)

        with pytest.raises(InfrastructureError):
            runner.run(WINDOW)

        assert service.describe_calls == 1

    def test_rejects_zero_attempts(self, make_job_service):
        with pytest.raises(ValueError):
            JobRunner(make_job_service(["SUCCEEDED"]), describe_max_attempts=0)


class TestDeadline:
    """Tests for the overall run budget while polling."""

    def test_times_out_while_job_still_running(self, make_job_service, fake_clock):
        service = make_job_service(["RUNNING"])
        runner = JobRunner(service, poll_interval=30, sleep=fake_clock.sleep)
        deadline = Deadline(15 * 60, clock=fake_clock)

        with pytest.raises(WorkflowTimeoutError):
            runner.run(WINDOW, deadline=deadline)

        assert fake_clock.now == pytest.approx(15 * 60)
        assert service.stopped == []

    def test_last_sleep_is_bounded_by_remaining_budget(self, make_job_service, fake_clock):
        service = make_job_service(["RUNNING"])
        runner = JobRunner(service, poll_interval=30, sleep=fake_clock.sleep)
        deadline = Deadline(45, clock=fake_clock)

        with pytest.raises(WorkflowTimeoutError):
            runner.run(WINDOW, deadline=deadline)

        assert fake_clock.sleeps == [30, 15]

    def test_succeeds_within_budget(self, make_job_service, fake_clock):
        service = make_job_service(["RUNNING", "SUCCEEDED"])
        runner = JobRunner(service, poll_interval=30, sleep=fake_clock.sleep)

        run = runner.run(WINDOW, deadline=Deadline(900, clock=fake_clock))

        assert run.state is JobState.SUCCEEDED


class TestCancel:
    """Tests for explicit cancellation."""

    def test_cancel_stops_run(self, make_job_service, fake_clock):
        service = make_job_service(["RUNNING"])
        runner = JobRunner(service, sleep=fake_clock.sleep)
        run = runner.submit(WINDOW)

        runner.cancel(run)

        assert service.stopped == [run.id]
