"""
Mirror configuration: the frozen record fixed at activation time.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from src.capture.encoding import normalize_mime

DEFAULT_FILE_TYPE = 'image/jpeg'
DEFAULT_QUALITY = 0.7
DEFAULT_RETRY_DELAY_MS = 100
DEFAULT_WARN_AFTER = 50


class SurfaceRef:
    """Indirect handle to a canvas that may be filled in later."""

    def __init__(self, current: Any = None) -> None:
        self.current = current

    def __repr__(self) -> str:
        return f"SurfaceRef({self.current!r})"


@dataclass(frozen=True)
class ManualMode:
    """Capture only when the caller invokes the trigger."""

    name = 'manual'


@dataclass(frozen=True)
class PeriodicMode:
    """Capture on a recurring timer; the trigger is inert."""

    interval_ms: int
    name = 'periodic'


CaptureMode = Union[ManualMode, PeriodicMode]


def capture_mode(interval: Any) -> CaptureMode:
    """
    Derive the capture mode from an interval value in ms.

    None and False disable the timer. Zero, negative and non-numeric
    intervals are also treated as disabled rather than as a busy timer.
    """
    if interval is None or interval is False or interval is True:
        return ManualMode()
    try:
        ms = int(interval)
    except (TypeError, ValueError):
        return ManualMode()
    if ms <= 0:
        return ManualMode()
    return PeriodicMode(interval_ms=ms)


@dataclass(frozen=True)
class RetryPolicy:
    delay_ms: int = DEFAULT_RETRY_DELAY_MS
    max_attempts: Optional[int] = None
    warn_after: int = DEFAULT_WARN_AFTER

    def exhausted(self, attempts: int) -> bool:
        return self.max_attempts is not None and attempts >= self.max_attempts


def default_surface_style() -> Dict[str, Any]:
    """Place options for the canvas: container origin, above the mirror."""
    return {'x': 0, 'y': 0}


def default_image_style() -> Dict[str, Any]:
    """Place options for the mirror: container origin, beneath the canvas."""
    return {'x': 0, 'y': 0}


def split_classes(text: Optional[str]) -> Tuple[str, ...]:
    tokens = []
    for token in str(text or '').split():
        if token not in tokens:
            tokens.append(token)
    return tuple(tokens)


def _frozen_mapping(value: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    return MappingProxyType(dict(value or {}))


@dataclass(frozen=True)
class MirrorConfig:
    surface: Any
    image_classes: str = ''
    surface_classes: str = ''
    surface_attributes: Mapping[str, str] = field(default_factory=dict)
    file_type: str = DEFAULT_FILE_TYPE
    quality: float = DEFAULT_QUALITY
    interval_ms: Optional[int] = None
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    default_style: bool = True
    surface_style: Mapping[str, Any] = field(default_factory=default_surface_style)
    image_style: Mapping[str, Any] = field(default_factory=default_image_style)
    mode: CaptureMode = field(init=False, repr=False)

    def __post_init__(self) -> None:
        # Copy caller mappings so nothing shared can change after construction
        object.__setattr__(self, 'surface_attributes', _frozen_mapping(
            {str(k): str(v) for k, v in dict(self.surface_attributes or {}).items()}
        ))
        object.__setattr__(self, 'surface_style', _frozen_mapping(self.surface_style))
        object.__setattr__(self, 'image_style', _frozen_mapping(self.image_style))
        object.__setattr__(self, 'file_type', normalize_mime(self.file_type))
        object.__setattr__(self, 'mode', capture_mode(self.interval_ms))

    @property
    def image_class_list(self) -> Tuple[str, ...]:
        return split_classes(self.image_classes)

    @property
    def surface_class_list(self) -> Tuple[str, ...]:
        return split_classes(self.surface_classes)


def _coerce_positive_int(value: Any, fallback: Optional[int], *, minimum: int = 1) -> Optional[int]:
    try:
        numeric = int(value)
    except (TypeError, ValueError):
        return fallback
    if numeric < minimum:
        return fallback
    return numeric


def _coerce_quality(value: Any, fallback: float) -> float:
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return fallback
    if not 0.0 <= numeric <= 1.0:
        return fallback
    return numeric


def _coerce_interval(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    return _coerce_positive_int(value, None)


def config_from_settings(settings: Mapping[str, Any], surface: Any = None) -> MirrorConfig:
    """
    Build a MirrorConfig from the ``mirror`` section of the settings.

    Args:
        settings: Application settings dictionary
        surface: Overrides the surface reference stored in settings

    Returns:
        MirrorConfig with invalid values replaced by defaults
    """
    raw = settings.get('mirror', {}) if isinstance(settings, Mapping) else {}
    if not isinstance(raw, Mapping):
        raw = {}

    attributes = raw.get('surface_attributes') or {}
    if not isinstance(attributes, Mapping):
        attributes = {}

    retry = RetryPolicy(
        delay_ms=_coerce_positive_int(raw.get('retry_delay_ms'), DEFAULT_RETRY_DELAY_MS),
        max_attempts=_coerce_positive_int(raw.get('retry_max_attempts'), None),
        warn_after=_coerce_positive_int(raw.get('retry_warn_after'), DEFAULT_WARN_AFTER),
    )

    return MirrorConfig(
        surface=surface if surface is not None else str(raw.get('surface') or ''),
        image_classes=str(raw.get('image_classes') or ''),
        surface_classes=str(raw.get('surface_classes') or ''),
        surface_attributes=attributes,
        file_type=str(raw.get('file_type') or DEFAULT_FILE_TYPE),
        quality=_coerce_quality(raw.get('quality'), DEFAULT_QUALITY),
        interval_ms=_coerce_interval(raw.get('interval_ms')),
        retry=retry,
        default_style=bool(raw.get('default_style', True)),
    )
