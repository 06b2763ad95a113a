"""Bounded retry of a single test invocation."""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from exceptions import RetriesExhaustedError, TestSkipped
from test_types import AttemptRecord, ErrorDescriptor, Outcome, RetryPolicy

Invocation = Callable[[int], Any]
AttemptHook = Callable[[AttemptRecord], None]
FailureHook = Callable[[AttemptRecord, BaseException], Optional[str]]


class RetryableExecutor:
    """Runs a test invocation under a :class:`RetryPolicy`.

    Each call to :meth:`run_with_retry` keeps its own attempt list, so one
    executor can be shared by parallel workers running different tests.
    Retries re-run the whole invocation; it must be safe to run again.
    """

    def __init__(
        self,
        on_attempt_start: Optional[AttemptHook] = None,
        on_attempt_end: Optional[AttemptHook] = None,
        on_failure: Optional[FailureHook] = None,
        logger: Optional[logging.Logger] = None,
        keep_history: bool = True,
    ):
        self.on_attempt_start = on_attempt_start
        self.on_attempt_end = on_attempt_end
        self.on_failure = on_failure
        self.logger = logger or logging.getLogger("harness.retry")
        self.keep_history = keep_history
        self._history: Dict[str, List[AttemptRecord]] = {}

    def attempts(self, test_id: str) -> List[AttemptRecord]:
        """Every attempt recorded for ``test_id`` by its latest run, oldest first.

        Always empty when the executor was built with ``keep_history=False``.
        """
        return list(self._history.get(test_id, []))

    def run_with_retry(
        self,
        test_id: str,
        invocation: Invocation,
        policy: Optional[RetryPolicy] = None,
    ) -> AttemptRecord:
        """Run ``invocation(attempt_number)`` until it passes, skips, or attempts run out.

        Returns:
            The final attempt's record; earlier attempts are available from
            :meth:`attempts`.
        """
        return self.run_attempts(test_id, invocation, policy)[-1]

    def run_attempts(
        self,
        test_id: str,
        invocation: Invocation,
        policy: Optional[RetryPolicy] = None,
    ) -> List[AttemptRecord]:
        """Same loop as :meth:`run_with_retry`, returning every record of this run."""
        policy = policy or RetryPolicy()
        records: List[AttemptRecord] = []
        if self.keep_history:
            self._history[test_id] = records

        retrying = Retrying(
            stop=stop_after_attempt(policy.max_attempts),
            wait=wait_fixed(policy.delay_seconds),
            retry=retry_if_exception_type(Exception) & retry_if_not_exception_type(TestSkipped),
            before_sleep=lambda state: self._log_retry(test_id, state, policy),
            reraise=True,
        )

        try:
            for attempt in retrying:
                with attempt:
                    record = AttemptRecord(
                        test_id=test_id,
                        attempt_number=attempt.retry_state.attempt_number - 1,
                    )
                    records.append(record)
                    self._run_attempt(record, invocation, policy)
        except TestSkipped:
            pass
        except Exception:
            self.logger.info(f"Test {test_id} failed after {len(records)} attempt(s)")

        return records

    def run_or_raise(
        self,
        test_id: str,
        invocation: Invocation,
        policy: Optional[RetryPolicy] = None,
    ) -> AttemptRecord:
        """Like :meth:`run_with_retry`, but raise on a terminal failure."""
        record = self.run_with_retry(test_id, invocation, policy)
        if record.outcome is Outcome.FAILED:
            raise RetriesExhaustedError(
                test_id,
                record.attempts_made,
                last_error=str(record.error) if record.error else None,
            )
        return record

    def _run_attempt(self, record: AttemptRecord, invocation: Invocation, policy: RetryPolicy) -> None:
        if self.on_attempt_start:
            self.on_attempt_start(record)

        try:
            invocation(record.attempt_number)
        except TestSkipped as exc:
            record.finish(Outcome.SKIPPED, error=ErrorDescriptor.from_exception(exc))
            self._notify_end(record)
            raise
        except Exception as exc:
            artifact = self._capture(record, exc)
            last = record.attempt_number + 1 >= policy.max_attempts
            record.finish(
                Outcome.FAILED,
                error=ErrorDescriptor.from_exception(exc),
                artifact_ref=artifact,
                retries_exhausted=last and policy.max_attempts > 1,
            )
            self._notify_end(record)
            raise

        record.finish(Outcome.PASSED)
        self._notify_end(record)

    def _capture(self, record: AttemptRecord, exc: BaseException) -> Optional[str]:
        if not self.on_failure:
            return None
        try:
            return self.on_failure(record, exc)
        except Exception as hook_exc:
            self.logger.error(f"Failure hook for {record.test_id} raised: {hook_exc}")
            return None

    def _notify_end(self, record: AttemptRecord) -> None:
        if self.on_attempt_end:
            self.on_attempt_end(record)

    def _log_retry(self, test_id: str, state: RetryCallState, policy: RetryPolicy) -> None:
        exc = state.outcome.exception() if state.outcome else None
        self.logger.info(
            f"Retrying test {test_id} (attempt {state.attempt_number + 1}/{policy.max_attempts}) after: {exc}"
        )
