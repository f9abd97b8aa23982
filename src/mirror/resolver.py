"""
Surface resolution: turn a selector, an indirect ref or a canvas widget into
a live handle, retrying on a fixed delay until the canvas exists.
"""
from __future__ import annotations

import logging
import tkinter as tk
import weakref
from typing import Any, Callable, Iterator, Optional

from src.mirror.config import RetryPolicy

LOGGER = logging.getLogger("CanvasMirror.Resolver")

SURFACE_TYPES = (tk.Canvas,)


def iter_widgets(root: Any) -> Iterator[Any]:
    """Depth-first walk of the widget tree below root, in tree order."""
    try:
        children = root.winfo_children()
    except tk.TclError:
        return
    for child in children:
        yield child
        yield from iter_widgets(child)


def query_selector(document: Any, selector: str) -> Optional[Any]:
    """
    Look up a widget by Tk path name (``.frame.board``) or by ``#name``.

    ``#name`` returns the first widget in tree order whose name matches.
    """
    selector = selector.strip()
    if not selector:
        return None
    if selector.startswith('#'):
        name = selector[1:]
        for widget in iter_widgets(document):
            if widget.winfo_name() == name:
                return widget
        return None
    try:
        return document.nametowidget(selector)
    except (KeyError, tk.TclError):
        return None


def _widget_alive(widget: Any) -> bool:
    try:
        return bool(widget.winfo_exists())
    except tk.TclError:
        return False


def is_surface(obj: Any) -> bool:
    return isinstance(obj, SURFACE_TYPES) and _widget_alive(obj)


class SurfaceHandle:
    """Weak reference to a resolved canvas, re-validated on every use."""

    def __init__(self, widget: Any) -> None:
        self._ref = weakref.ref(widget)

    def get(self) -> Optional[Any]:
        widget = self._ref()
        if widget is None or not _widget_alive(widget):
            return None
        return widget

    @property
    def alive(self) -> bool:
        return self.get() is not None


def dereference(document: Any, reference: Any) -> Optional[Any]:
    """Read the candidate object for one resolution attempt."""
    if isinstance(reference, str):
        return query_selector(document, reference)
    if isinstance(reference, SURFACE_TYPES):
        return reference
    # indirect handle; its target is read fresh on each attempt
    return getattr(reference, 'current', None)


class SurfaceResolver:
    """Resolves the configured reference, retrying until found or cancelled."""

    def __init__(
        self,
        document: Any,
        reference: Any,
        on_resolved: Callable[[SurfaceHandle], None],
        retry: Optional[RetryPolicy] = None,
        on_failed: Optional[Callable[[], None]] = None,
    ) -> None:
        self._document = document
        self._reference = reference
        self._on_resolved = on_resolved
        self._on_failed = on_failed
        self._retry = retry or RetryPolicy()
        self._retry_job: Optional[str] = None
        self._attempts = 0
        self._warned = False
        self._done = False

    @property
    def attempts(self) -> int:
        return self._attempts

    @property
    def pending(self) -> bool:
        return self._retry_job is not None

    def start(self) -> None:
        if self._done or self._attempts:
            return
        self._attempt()

    def cancel(self) -> None:
        self._done = True
        if self._retry_job is None:
            return
        try:
            self._document.after_cancel(self._retry_job)
        except tk.TclError:
            pass
        self._retry_job = None

    def _attempt(self) -> None:
        self._retry_job = None
        if self._done:
            return
        self._attempts += 1

        candidate = dereference(self._document, self._reference)
        if is_surface(candidate):
            self._done = True
            LOGGER.debug("Resolved %r after %d attempt(s)", self._reference, self._attempts)
            self._on_resolved(SurfaceHandle(candidate))
            return

        if self._retry.exhausted(self._attempts):
            self._done = True
            LOGGER.warning(
                "Giving up on canvas %r after %d attempts", self._reference, self._attempts
            )
            if self._on_failed is not None:
                self._on_failed()
            return

        if not self._warned and self._attempts >= self._retry.warn_after:
            self._warned = True
            LOGGER.warning(
                "Canvas %r still not found after %d attempts; still retrying",
                self._reference,
                self._attempts,
            )

        try:
            self._retry_job = self._document.after(self._retry.delay_ms, self._attempt)
        except tk.TclError as exc:
            # document destroyed underneath us
            self._done = True
            LOGGER.debug("Cannot schedule resolution retry: %s", exc)
