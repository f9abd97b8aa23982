"""
Canvas mirror engine: resolves the canvas, builds the mirror image and keeps
it updated until deactivated.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Tuple

from src.capture.base_capture import ScreenCapture
from src.mirror.config import ManualMode, MirrorConfig
from src.mirror.mirror_image import MirrorImage, MirrorImageManager
from src.mirror.resolver import SurfaceHandle, SurfaceResolver
from src.mirror.scheduler import EngineState, UpdateScheduler
from src.mirror.snapshot import SnapshotCapturer

LOGGER = logging.getLogger("CanvasMirror.Engine")


def _noop() -> None:
    return None


class CanvasMirror:
    """One activation of the mirror for a single canvas."""

    def __init__(
        self,
        document: Any,
        config: MirrorConfig,
        capture: Optional[ScreenCapture] = None,
        label_factory: Optional[Callable[..., Any]] = None,
    ) -> None:
        """
        Args:
            document: Tk root (or container) the canvas lives under; also
                hosts every timer this engine schedules
            config: Frozen mirror configuration
            capture: Screen capture backend, MSSCapture by default
            label_factory: Widget class used for the mirror label
        """
        self._document = document
        self._config = config
        self._handle: Optional[SurfaceHandle] = None
        self._trigger: Optional[Callable[[], None]] = None

        self._manager = MirrorImageManager(config, label_factory=label_factory)
        self._capturer = SnapshotCapturer(
            document,
            self._surface,
            self._mirror,
            config.file_type,
            config.quality,
            capture=capture,
        )
        self._scheduler = UpdateScheduler(document, config.mode, self._capturer.trigger)
        self._resolver = SurfaceResolver(
            document,
            config.surface,
            self._on_resolved,
            retry=config.retry,
            on_failed=self._scheduler.fail,
        )

    @property
    def config(self) -> MirrorConfig:
        return self._config

    @property
    def state(self) -> EngineState:
        return self._scheduler.state

    @property
    def mirror(self) -> Optional[MirrorImage]:
        return self._mirror()

    @property
    def surface(self) -> Optional[Any]:
        return self._surface()

    def _surface(self) -> Optional[Any]:
        if self._handle is None:
            return None
        return self._handle.get()

    def _mirror(self) -> Optional[MirrorImage]:
        mirror = self._manager.mirror
        if mirror is None or not mirror.exists():
            return None
        return mirror

    def activate(self) -> Callable[[], None]:
        """
        Start resolving the canvas.

        Returns:
            Zero-argument trigger: requests a capture in manual mode, does
            nothing in periodic mode
        """
        if self._trigger is not None:
            return self._trigger

        if isinstance(self._config.mode, ManualMode):
            self._trigger = self._scheduler.request_capture
        else:
            self._trigger = _noop

        if self._scheduler.begin_resolving():
            LOGGER.debug("Activating mirror for %r (%s mode)", self._config.surface, self._config.mode.name)
            self._resolver.start()
        return self._trigger

    def _on_resolved(self, handle: SurfaceHandle) -> None:
        if self._scheduler.state is not EngineState.RESOLVING:
            return
        self._handle = handle
        if self._manager.setup(handle) is None:
            # canvas vanished between resolution and setup
            self._handle = None
            self._scheduler.fail()
            return
        self._scheduler.arm()

    def deactivate(self) -> None:
        """Cancel pending work and drop the mirror; safe to call in any state."""
        if self._scheduler.state is EngineState.TORN_DOWN:
            return
        self._resolver.cancel()
        self._scheduler.teardown()
        self._manager.teardown()
        self._handle = None
        self._capturer.close()
        LOGGER.debug("Mirror for %r deactivated", self._config.surface)

    def to_data_url(self) -> Optional[str]:
        return self._capturer.to_data_url()

    def export(self, path: str, file_type: Optional[str] = None, quality: Optional[float] = None) -> Optional[str]:
        return self._capturer.export(path, file_type=file_type, quality=quality)

    def __enter__(self) -> Callable[[], None]:
        return self.activate()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.deactivate()


def mirror_canvas(document: Any, surface: Any, **options: Any) -> Tuple[CanvasMirror, Callable[[], None]]:
    """Build a config from keyword options, activate, and return (engine, trigger)."""
    capture = options.pop('capture', None)
    label_factory = options.pop('label_factory', None)
    engine = CanvasMirror(
        document,
        MirrorConfig(surface=surface, **options),
        capture=capture,
        label_factory=label_factory,
    )
    return engine, engine.activate()
