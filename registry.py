"""Per-execution-context resource registry (one browser session per worker thread)."""
from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, Generic, Hashable, Iterator, List, Optional, TypeVar

from exceptions import HarnessError, ResourceCreationError

T = TypeVar("T")


def current_context_id() -> int:
    """Identifier of the calling worker thread."""
    return threading.get_ident()


def _close(handle: Any) -> None:
    handle.close()


class ResourceRegistry(Generic[T]):
    """Maps an execution context to exactly one live resource handle.

    Handles are built lazily by ``factory`` on the first :meth:`acquire` for a
    context and disposed by :meth:`release`. Lookups, inserts and removals are
    single dict operations, so contexts never contend on a shared lock. Two
    racing acquires for the same context both build a handle; the last one
    stored wins the slot.
    """

    def __init__(
        self,
        factory: Callable[[], T],
        disposer: Callable[[T], None] = _close,
        logger: Optional[logging.Logger] = None,
    ):
        self._factory = factory
        self._disposer = disposer
        self._handles: Dict[Hashable, T] = {}
        self.logger = logger or logging.getLogger("harness.registry")

    def acquire(self, context_id: Optional[Hashable] = None) -> T:
        """Return the context's handle, creating it on first use."""
        key = current_context_id() if context_id is None else context_id
        handle = self._handles.get(key)
        if handle is not None:
            return handle

        try:
            handle = self._factory()
        except HarnessError:
            raise
        except Exception as exc:
            raise ResourceCreationError(
                f"Resource factory failed: {exc}", context_id=key
            ) from exc

        self._handles[key] = handle
        self.logger.debug("Created resource for context %s: %r", key, handle)
        return handle

    def get(self, context_id: Optional[Hashable] = None) -> Optional[T]:
        """Return the context's handle without creating one."""
        key = current_context_id() if context_id is None else context_id
        return self._handles.get(key)

    def release(self, context_id: Optional[Hashable] = None) -> None:
        """Dispose the context's handle; a no-op when there is none."""
        key = current_context_id() if context_id is None else context_id
        handle = self._handles.pop(key, None)
        if handle is None:
            return
        self.logger.debug("Releasing resource for context %s", key)
        self._disposer(handle)

    def discard(self, context_id: Hashable) -> Optional[T]:
        """Forget the context's handle without disposing it; returns the handle."""
        return self._handles.pop(context_id, None)

    def release_all(self) -> None:
        """Dispose every remaining handle, continuing past individual failures."""
        errors: List[BaseException] = []
        for key in list(self._handles):
            try:
                self.release(key)
            except Exception as exc:
                self.logger.error(f"Failed to release resource for context {key}: {exc}")
                errors.append(exc)
        if errors:
            raise errors[0]

    def contexts(self) -> List[Hashable]:
        return list(self._handles)

    def __contains__(self, context_id: Hashable) -> bool:
        return context_id in self._handles

    def __len__(self) -> int:
        return len(self._handles)

    def __iter__(self) -> Iterator[Hashable]:
        return iter(list(self._handles))
