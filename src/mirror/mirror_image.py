"""
Mirror image widget and the one-time setup that places it next to the canvas.
"""
from __future__ import annotations

import logging
import tkinter as tk
from typing import Any, Callable, Iterable, Mapping, Optional

from PIL import ImageTk

from src.capture.encoding import decode_data_url
from src.mirror.config import MirrorConfig
from src.mirror.resolver import SurfaceHandle

LOGGER = logging.getLogger("CanvasMirror.MirrorImage")


def add_classes(widget: Any, tokens: Iterable[str]) -> None:
    """Append class tokens to the widget's bindtags, skipping ones already present."""
    tags = list(widget.bindtags())
    for token in tokens:
        if token not in tags:
            tags.append(token)
    widget.bindtags(tuple(tags))


def apply_attributes(widget: Any, attributes: Mapping[str, str]) -> None:
    """Set widget options by name, overwriting current values."""
    known = set(widget.keys())
    for name, value in attributes.items():
        if name not in known:
            LOGGER.warning("Skipping unknown option %r for %s", name, widget)
            continue
        try:
            widget.configure({name: value})
        except tk.TclError as exc:
            LOGGER.warning("Could not set %s=%r on %s: %s", name, value, widget, exc)


def _clean_info(info: Mapping[str, Any]) -> dict:
    return {k: v for k, v in info.items() if k != 'in' and v not in ('', None)}


def insert_after(surface: Any, widget: Any) -> None:
    """
    Manage widget right after surface in the surface's geometry manager and
    stack it directly beneath the surface.
    """
    manager = surface.winfo_manager()
    if manager == 'pack':
        widget.pack(after=surface, **_clean_info(surface.pack_info()))
    elif manager == 'grid':
        widget.grid(**_clean_info(surface.grid_info()))
    elif manager == 'place':
        widget.place(**_clean_info(surface.place_info()))
    else:
        widget.place(x=0, y=0)
    widget.lower(surface)


class MirrorImage:
    """Image label standing in for a canvas."""

    def __init__(
        self,
        master: Any,
        classes: Iterable[str] = (),
        label_factory: Optional[Callable[..., Any]] = None,
    ) -> None:
        factory = label_factory or tk.Label
        self.label = factory(master, borderwidth=0, highlightthickness=0)
        add_classes(self.label, classes)
        self.photo: Optional[ImageTk.PhotoImage] = None
        self.src: str = ''

    def exists(self) -> bool:
        if self.label is None:
            return False
        try:
            return bool(self.label.winfo_exists())
        except tk.TclError:
            return False

    def set_source(self, data_url: str) -> None:
        """
        Assign a new data URL and show its image.

        Args:
            data_url: Encoded image produced by the snapshot capturer
        """
        self.src = data_url
        try:
            image = decode_data_url(data_url)
        except ValueError as exc:
            LOGGER.debug("Ignoring undecodable mirror source: %s", exc)
            return
        if image is None:
            self.photo = None
            self.label.configure(image='')
            return
        self.photo = ImageTk.PhotoImage(image)
        self.label.configure(image=self.photo)

    def destroy(self) -> None:
        if self.label is None:
            return
        try:
            self.label.destroy()
        except tk.TclError:
            pass
        self.label = None
        self.photo = None


class MirrorImageManager:
    """Creates and places the mirror once the canvas has been resolved."""

    def __init__(self, config: MirrorConfig, label_factory: Optional[Callable[..., Any]] = None) -> None:
        self._config = config
        self._label_factory = label_factory
        self._mirror: Optional[MirrorImage] = None
        self._done = False

    @property
    def mirror(self) -> Optional[MirrorImage]:
        return self._mirror

    def setup(self, handle: SurfaceHandle) -> Optional[MirrorImage]:
        if self._done:
            LOGGER.debug("Mirror setup already ran; ignoring")
            return self._mirror
        self._done = True

        surface = handle.get()
        if surface is None:
            return None

        cfg = self._config
        apply_attributes(surface, cfg.surface_attributes)
        add_classes(surface, cfg.surface_class_list)
        if cfg.default_style:
            surface.place(**dict(cfg.surface_style))

        mirror = MirrorImage(surface.master, cfg.image_class_list, self._label_factory)
        if cfg.default_style:
            mirror.label.place(**dict(cfg.image_style))
            mirror.label.lower(surface)
        else:
            insert_after(surface, mirror.label)

        self._mirror = mirror
        LOGGER.debug("Mirror %s placed beneath %s", mirror.label, surface)
        return mirror

    def teardown(self) -> None:
        self._done = True
        if self._mirror is not None:
            self._mirror.destroy()
            self._mirror = None
