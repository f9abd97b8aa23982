"""
Image encoding helpers.

Turns captured Pillow images into data URLs (``data:<mime>;base64,...``)
and files, following the browser ``toDataURL`` rules: unknown MIME types
fall back to PNG, quality only applies to lossy formats and an out-of-range
quality uses the encoder default.
"""
import base64
import io
import os
from typing import Any, Optional

from PIL import Image

DEFAULT_FILE_TYPE = 'image/png'
DEFAULT_QUALITY = 0.92
EMPTY_DATA_URL = 'data:,'

# MIME type -> Pillow format name
PIL_FORMATS = {
    'image/png': 'PNG',
    'image/jpeg': 'JPEG',
    'image/webp': 'WEBP',
    'image/bmp': 'BMP',
    'image/gif': 'GIF',
}
LOSSY_TYPES = frozenset({'image/jpeg', 'image/webp'})
_NO_ALPHA_TYPES = frozenset({'image/jpeg', 'image/bmp', 'image/gif'})
_SUFFIXES = {
    '.png': 'image/png',
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
    '.webp': 'image/webp',
    '.bmp': 'image/bmp',
    '.gif': 'image/gif',
}


def normalize_mime(file_type: Optional[str]) -> str:
    """Return a supported MIME type, falling back to PNG."""
    mime = str(file_type or '').strip().lower()
    if mime == 'image/jpg':
        mime = 'image/jpeg'
    return mime if mime in PIL_FORMATS else DEFAULT_FILE_TYPE


def mime_for_path(path: str) -> Optional[str]:
    _, ext = os.path.splitext(str(path))
    return _SUFFIXES.get(ext.lower())


def _quality_percent(quality: Any) -> int:
    try:
        value = float(quality)
    except (TypeError, ValueError):
        value = DEFAULT_QUALITY
    if not 0.0 <= value <= 1.0:
        value = DEFAULT_QUALITY
    return max(1, min(100, int(round(value * 100))))


def _flatten(image: Image.Image) -> Image.Image:
    """Composite any alpha channel onto black."""
    if image.mode in ('RGBA', 'LA') or (image.mode == 'P' and 'transparency' in image.info):
        rgba = image.convert('RGBA')
        background = Image.new('RGBA', rgba.size, (0, 0, 0, 255))
        return Image.alpha_composite(background, rgba).convert('RGB')
    if image.mode not in ('RGB', 'L'):
        return image.convert('RGB')
    return image


def encode_image(image: Image.Image, file_type: Optional[str] = None, quality: Any = None) -> bytes:
    """
    Encode an image to bytes.

    Args:
        image: Source image
        file_type: MIME type; unsupported values encode as PNG
        quality: 0-1, only used by lossy formats

    Returns:
        Encoded image bytes
    """
    mime = normalize_mime(file_type)
    if mime in _NO_ALPHA_TYPES:
        image = _flatten(image)
    params = {}
    if mime in LOSSY_TYPES:
        params['quality'] = _quality_percent(quality)
    buf = io.BytesIO()
    image.save(buf, format=PIL_FORMATS[mime], **params)
    return buf.getvalue()


def to_data_url(image: Optional[Image.Image], file_type: Optional[str] = None, quality: Any = None) -> str:
    """Encode an image as a base64 data URL; empty images give ``data:,``."""
    if image is None or image.width <= 0 or image.height <= 0:
        return EMPTY_DATA_URL
    mime = normalize_mime(file_type)
    payload = base64.b64encode(encode_image(image, mime, quality)).decode('ascii')
    return f"data:{mime};base64,{payload}"


def decode_data_url(data_url: str) -> Optional[Image.Image]:
    """
    Decode a base64 data URL back into an image.

    Returns None for the empty data URL. Raises ValueError when the string
    is not a base64 image data URL.
    """
    if data_url == EMPTY_DATA_URL:
        return None
    header, sep, payload = str(data_url).partition(',')
    if not sep or not header.startswith('data:image/') or not header.endswith(';base64'):
        raise ValueError("not a base64 image data URL")
    try:
        raw = base64.b64decode(payload, validate=True)
        image = Image.open(io.BytesIO(raw))
        image.load()
    except Exception as exc:
        raise ValueError(f"undecodable image data: {exc}") from exc
    return image


def save_image(image: Image.Image, path: str, file_type: Optional[str] = None, quality: Any = None) -> str:
    """Write an image to disk; the MIME type defaults to the path suffix."""
    mime = normalize_mime(file_type or mime_for_path(path))
    target = os.path.abspath(path)
    folder = os.path.dirname(target)
    if folder:
        os.makedirs(folder, exist_ok=True)
    with open(target, 'wb') as fh:
        fh.write(encode_image(image, mime, quality))
    return target
