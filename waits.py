"""Explicit-wait primitive: poll a predicate against a target until it is satisfied."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, FrozenSet, Iterable, Optional, Tuple, Type

from exceptions import InvalidConfigurationError, TransientProbeError, WaitTimeoutError

if TYPE_CHECKING:
    from config import WaitConfig

logger = logging.getLogger("harness.waits")

DEFAULT_POLL_INTERVAL = 0.5


class _Pending:
    """Sentinel type for "condition not met yet"."""

    _instance: Optional["_Pending"] = None

    def __new__(cls) -> "_Pending":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "PENDING"

    def __bool__(self) -> bool:
        return False


PENDING = _Pending()

Predicate = Callable[[Any], Any]


def is_pending(value: Any) -> bool:
    """Return True when a predicate result means "keep waiting".

    ``None`` and ``False`` count as pending, like explicit waits in other
    browser tooling.
    """
    return value is PENDING or value is None or value is False


def default_poll_interval(timeout: float) -> float:
    return min(DEFAULT_POLL_INTERVAL, timeout / 10)


@dataclass(frozen=True)
class WaitSpec:
    """Immutable wait parameters (seconds)."""

    timeout: float
    poll_interval: Optional[float] = None
    ignored: FrozenSet[Type[BaseException]] = field(
        default_factory=lambda: frozenset({TransientProbeError})
    )

    def __post_init__(self) -> None:
        if self.timeout is None or self.timeout <= 0:
            raise InvalidConfigurationError(
                "Wait timeout must be positive", parameter="timeout", value=self.timeout
            )
        if self.poll_interval is None:
            object.__setattr__(self, "poll_interval", default_poll_interval(self.timeout))
        elif self.poll_interval <= 0:
            raise InvalidConfigurationError(
                "Poll interval must be positive", parameter="poll_interval", value=self.poll_interval
            )
        object.__setattr__(self, "ignored", frozenset(self.ignored) | {TransientProbeError})

    @property
    def single_shot(self) -> bool:
        """A poll interval longer than the timeout leaves room for one evaluation only."""
        return self.poll_interval > self.timeout

    def ignored_types(self) -> Tuple[Type[BaseException], ...]:
        return tuple(self.ignored)


class ConditionPoller:
    """Blocking sleep-poll loop shared by every wait helper.

    The poller holds no per-wait state, so one instance can serve any number
    of worker threads at once.
    """

    def __init__(
        self,
        timeout: float = 10.0,
        short_timeout: float = 5.0,
        long_timeout: float = 20.0,
        page_load_timeout: float = 30.0,
        poll_interval: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.timeout = timeout
        self.short_timeout = short_timeout
        self.long_timeout = long_timeout
        self.page_load_timeout = page_load_timeout
        self.poll_interval = poll_interval
        self._clock = clock
        self._sleep = sleep

    @classmethod
    def from_config(cls, config: "WaitConfig", **kwargs: Any) -> "ConditionPoller":
        return cls(
            timeout=config.timeout,
            short_timeout=config.short_timeout,
            long_timeout=config.long_timeout,
            page_load_timeout=config.page_load_timeout,
            poll_interval=config.poll_interval,
            **kwargs,
        )

    def spec(
        self,
        timeout: Optional[float] = None,
        poll_interval: Optional[float] = None,
        ignored: Optional[Iterable[Type[BaseException]]] = None,
    ) -> WaitSpec:
        """Build a WaitSpec, falling back to this poller's defaults."""
        timeout = self.timeout if timeout is None else timeout
        if poll_interval is None and self.poll_interval is not None and self.poll_interval <= timeout:
            poll_interval = self.poll_interval
        if ignored is None:
            return WaitSpec(timeout=timeout, poll_interval=poll_interval)
        return WaitSpec(timeout=timeout, poll_interval=poll_interval, ignored=frozenset(ignored))

    def wait_until(
        self,
        target: Any,
        predicate: Predicate,
        timeout: Optional[float] = None,
        poll_interval: Optional[float] = None,
        ignored: Optional[Iterable[Type[BaseException]]] = None,
        message: Optional[str] = None,
    ) -> Any:
        """Poll ``predicate(target)`` until it yields a non-pending value.

        Args:
            target: Object handed to the predicate on every poll
            predicate: Callable returning PENDING (or None/False) or an outcome
            timeout: Seconds before giving up (default: poller timeout)
            poll_interval: Seconds between polls (default: a fraction of timeout)
            ignored: Exception types treated as pending
            message: Text for the timeout error

        Returns:
            The first non-pending predicate result

        Raises:
            InvalidConfigurationError: Non-positive timeout or poll interval
            WaitTimeoutError: The deadline passed without a satisfying result
        """
        spec = self.spec(timeout, poll_interval, ignored)
        return self.wait_for(target, predicate, spec, message=message)

    def wait_for(
        self,
        target: Any,
        predicate: Predicate,
        spec: WaitSpec,
        message: Optional[str] = None,
    ) -> Any:
        """Run the poll loop described by ``spec``."""
        ignored = spec.ignored_types()
        start = self._clock()
        deadline = start + spec.timeout
        polls = 0
        last_value: Any = PENDING
        last_error: Optional[BaseException] = None

        while True:
            polls += 1
            try:
                last_value = predicate(target)
            except ignored as exc:
                logger.debug("Probe error treated as pending (poll %d): %s", polls, exc)
                last_value = PENDING
                last_error = exc

            if not is_pending(last_value):
                logger.debug(
                    "Condition met after %d poll(s) (%.0fms)",
                    polls, (self._clock() - start) * 1000,
                )
                return last_value

            if spec.single_shot:
                break

            remaining = deadline - self._clock()
            if remaining <= 0:
                break
            self._sleep(min(spec.poll_interval, remaining))

        description = message or getattr(predicate, "description", None) or "condition"
        raise WaitTimeoutError(
            f"Timed out after {spec.timeout}s waiting for {description}",
            timeout=spec.timeout,
            polls=polls,
            last_value=last_value,
            last_error=last_error,
        )


_default_poller = ConditionPoller()


def wait_until(
    target: Any,
    predicate: Predicate,
    timeout: float,
    poll_interval: Optional[float] = None,
    ignored: Optional[Iterable[Type[BaseException]]] = None,
    message: Optional[str] = None,
) -> Any:
    """Module-level shortcut for :meth:`ConditionPoller.wait_until`."""
    return _default_poller.wait_until(
        target, predicate, timeout=timeout, poll_interval=poll_interval, ignored=ignored, message=message
    )
