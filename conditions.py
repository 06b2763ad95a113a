"""Named predicate builders for :class:`waits.ConditionPoller`.

Every builder returns a callable taking a Playwright ``Page`` and returning
either :data:`waits.PENDING` or the satisfying value (usually the first
matching ``Locator``). Playwright errors raised while probing, such as a node
detached mid-check or a navigation in flight, are reported as
:class:`TransientProbeError` so the poll loop keeps going.
"""
from __future__ import annotations

import functools
from typing import TYPE_CHECKING, Any, Callable

from playwright.sync_api import Error as PlaywrightError

from exceptions import TransientProbeError
from waits import PENDING, Predicate, is_pending

if TYPE_CHECKING:
    from playwright.sync_api import Locator, Page


def _describe(description: str) -> Callable[[Predicate], Predicate]:
    """Attach a human-readable description used in timeout messages."""

    def decorator(func: Predicate) -> Predicate:
        func.description = description  # type: ignore[attr-defined]
        return func

    return decorator


_CLOSED_MARKERS = ("has been closed", "Target closed")


def _target_closed(exc: PlaywrightError) -> bool:
    """True for errors from a closed page, context or browser."""
    if type(exc).__name__ == "TargetClosedError":
        return True
    message = exc.message or ""
    return any(marker in message for marker in _CLOSED_MARKERS)


def _probe(selector: str | None = None) -> Callable[[Predicate], Predicate]:
    """Convert Playwright errors raised by a probe into TransientProbeError.

    A closed page, context or browser never recovers, so that error propagates.
    """

    def decorator(func: Predicate) -> Predicate:
        @functools.wraps(func)
        def wrapper(page: Page) -> Any:
            try:
                return func(page)
            except PlaywrightError as exc:
                if _target_closed(exc):
                    raise
                raise TransientProbeError(f"Probe failed: {exc.message}", selector=selector) from exc

        return wrapper

    return decorator


def _first(page: Page, selector: str) -> Locator | None:
    locator = page.locator(selector)
    if locator.count() == 0:
        return None
    return locator.first


# ─────────────────────────────────────────────────────────────────────────────
# Element conditions
# ─────────────────────────────────────────────────────────────────────────────

def present(selector: str) -> Predicate:
    """Element is attached to the DOM."""

    @_describe(f"element {selector!r} to be present")
    @_probe(selector)
    def predicate(page: Page) -> Any:
        element = _first(page, selector)
        return element if element is not None else PENDING

    return predicate


def visible(selector: str) -> Predicate:
    """Element is attached and visible."""

    @_describe(f"element {selector!r} to be visible")
    @_probe(selector)
    def predicate(page: Page) -> Any:
        element = _first(page, selector)
        if element is None or not element.is_visible():
            return PENDING
        return element

    return predicate


def clickable(selector: str) -> Predicate:
    """Element is visible and enabled."""

    @_describe(f"element {selector!r} to be clickable")
    @_probe(selector)
    def predicate(page: Page) -> Any:
        element = _first(page, selector)
        if element is None or not element.is_visible() or not element.is_enabled():
            return PENDING
        return element

    return predicate


def invisible(selector: str) -> Predicate:
    """Element is hidden or gone from the DOM."""

    @_describe(f"element {selector!r} to disappear")
    @_probe(selector)
    def predicate(page: Page) -> Any:
        element = _first(page, selector)
        if element is None or not element.is_visible():
            return True
        return PENDING

    return predicate


def text_to_be(selector: str, text: str) -> Predicate:
    """Element's inner text equals ``text`` (surrounding whitespace ignored)."""

    @_describe(f"element {selector!r} to have text {text!r}")
    @_probe(selector)
    def predicate(page: Page) -> Any:
        element = _first(page, selector)
        if element is None or element.inner_text().strip() != text:
            return PENDING
        return element

    return predicate


def text_contains(selector: str, text: str) -> Predicate:
    """Element's inner text contains ``text``."""

    @_describe(f"element {selector!r} to contain text {text!r}")
    @_probe(selector)
    def predicate(page: Page) -> Any:
        element = _first(page, selector)
        if element is None or text not in element.inner_text():
            return PENDING
        return element

    return predicate


def attribute_to_be(selector: str, name: str, value: str) -> Predicate:
    """Element attribute ``name`` equals ``value``."""

    @_describe(f"attribute {name!r} of {selector!r} to be {value!r}")
    @_probe(selector)
    def predicate(page: Page) -> Any:
        element = _first(page, selector)
        if element is None or element.get_attribute(name) != value:
            return PENDING
        return element

    return predicate


def attribute_contains(selector: str, name: str, value: str) -> Predicate:
    """Element attribute ``name`` contains ``value``."""

    @_describe(f"attribute {name!r} of {selector!r} to contain {value!r}")
    @_probe(selector)
    def predicate(page: Page) -> Any:
        element = _first(page, selector)
        if element is None or value not in (element.get_attribute(name) or ""):
            return PENDING
        return element

    return predicate


def attribute_present(selector: str, name: str) -> Predicate:
    """Element carries attribute ``name`` with any value."""

    @_describe(f"attribute {name!r} on {selector!r}")
    @_probe(selector)
    def predicate(page: Page) -> Any:
        element = _first(page, selector)
        if element is None or element.get_attribute(name) is None:
            return PENDING
        return element

    return predicate


def all_visible(selector: str) -> Predicate:
    """At least one element matches and every match is visible."""

    @_describe(f"all elements {selector!r} to be visible")
    @_probe(selector)
    def predicate(page: Page) -> Any:
        elements = page.locator(selector).all()
        if not elements or not all(e.is_visible() for e in elements):
            return PENDING
        return elements

    return predicate


def selected(selector: str, state: bool = True) -> Predicate:
    """Checkbox / radio button checked state equals ``state``."""

    @_describe(f"element {selector!r} to be {'selected' if state else 'not selected'}")
    @_probe(selector)
    def predicate(page: Page) -> Any:
        element = _first(page, selector)
        if element is None or element.is_checked() != state:
            return PENDING
        return element

    return predicate


# ─────────────────────────────────────────────────────────────────────────────
# Page conditions
# ─────────────────────────────────────────────────────────────────────────────

def url_contains(fragment: str) -> Predicate:
    """Current URL contains ``fragment``."""

    @_describe(f"URL to contain {fragment!r}")
    def predicate(page: Page) -> Any:
        url = page.url
        return url if fragment in url else PENDING

    return predicate


def title_contains(fragment: str) -> Predicate:
    """Page title contains ``fragment``."""

    @_describe(f"title to contain {fragment!r}")
    @_probe()
    def predicate(page: Page) -> Any:
        title = page.title()
        return title if fragment in title else PENDING

    return predicate


def document_ready() -> Predicate:
    """``document.readyState`` is ``complete``."""

    @_describe("document to finish loading")
    @_probe()
    def predicate(page: Page) -> Any:
        return True if page.evaluate("() => document.readyState") == "complete" else PENDING

    return predicate


def window_count(expected: int) -> Predicate:
    """The page's browser context has exactly ``expected`` open pages."""

    @_describe(f"{expected} open window(s)")
    def predicate(page: Page) -> Any:
        pages = page.context.pages
        return pages if len(pages) == expected else PENDING

    return predicate


# ─────────────────────────────────────────────────────────────────────────────
# Composition
# ─────────────────────────────────────────────────────────────────────────────

def all_of(*predicates: Predicate) -> Predicate:
    """Every predicate is satisfied on the same poll.

    Evaluated left to right on each poll; the first pending result makes the
    whole poll pending. Returns the last predicate's result.
    """
    if not predicates:
        raise ValueError("all_of() needs at least one predicate")

    @_describe(" and ".join(getattr(p, "description", "condition") for p in predicates))
    def predicate(target: Any) -> Any:
        result: Any = PENDING
        for inner in predicates:
            result = inner(target)
            if is_pending(result):
                return PENDING
        return result

    return predicate


def any_of(*predicates: Predicate) -> Predicate:
    """At least one predicate is satisfied; returns the first satisfied result."""
    if not predicates:
        raise ValueError("any_of() needs at least one predicate")

    @_describe(" or ".join(getattr(p, "description", "condition") for p in predicates))
    def predicate(target: Any) -> Any:
        for inner in predicates:
            result = inner(target)
            if not is_pending(result):
                return result
        return PENDING

    return predicate
