import base64
import io

import pytest
from PIL import Image

from src.capture import encoding


def _pattern(width: int = 24, height: int = 12) -> Image.Image:
    image = Image.new('RGB', (width, height))
    image.putdata([
        ((x * 11) % 256, (y * 19) % 256, (x * y) % 256)
        for y in range(height)
        for x in range(width)
    ])
    return image


def _payload(data_url: str) -> bytes:
    return base64.b64decode(data_url.split(',', 1)[1])


def test_png_data_url_decodes_to_identical_pixels():
    source = _pattern()
    data_url = encoding.to_data_url(source, 'image/png')

    assert data_url.startswith('data:image/png;base64,')
    decoded = encoding.decode_data_url(data_url).convert('RGB')
    assert decoded.size == source.size
    assert list(decoded.getdata()) == list(source.getdata())


def test_jpeg_size_grows_with_quality():
    source = _pattern(64, 64)
    low = _payload(encoding.to_data_url(source, 'image/jpeg', 0.1))
    high = _payload(encoding.to_data_url(source, 'image/jpeg', 0.95))

    assert len(low) < len(high)


def test_png_ignores_quality():
    source = _pattern()
    assert encoding.encode_image(source, 'image/png', 0.1) == encoding.encode_image(source, 'image/png', 0.9)


@pytest.mark.parametrize("file_type", ['image/tiff', '', None, 'text/plain'])
def test_unsupported_type_falls_back_to_png(file_type):
    assert encoding.normalize_mime(file_type) == 'image/png'
    assert encoding.to_data_url(_pattern(), file_type).startswith('data:image/png;base64,')


def test_jpg_alias_normalizes():
    assert encoding.normalize_mime('IMAGE/JPG') == 'image/jpeg'


def test_out_of_range_quality_uses_encoder_default():
    source = _pattern(32, 32)
    default = encoding.encode_image(source, 'image/jpeg', encoding.DEFAULT_QUALITY)

    assert encoding.encode_image(source, 'image/jpeg', 7) == default
    assert encoding.encode_image(source, 'image/jpeg', 'bad') == default


def test_jpeg_flattens_alpha_onto_black():
    transparent = Image.new('RGBA', (8, 8), (255, 255, 255, 0))
    data = encoding.encode_image(transparent, 'image/jpeg', 0.9)

    pixel = Image.open(io.BytesIO(data)).convert('RGB').getpixel((4, 4))
    assert all(channel < 10 for channel in pixel)


def test_empty_image_gives_empty_data_url():
    assert encoding.to_data_url(None) == encoding.EMPTY_DATA_URL
    assert encoding.to_data_url(Image.new('RGB', (0, 0))) == 'data:,'
    assert encoding.decode_data_url('data:,') is None


@pytest.mark.parametrize("text", ['hello', 'data:text/plain;base64,aGk=', 'data:image/png;base64,!!!'])
def test_decode_rejects_non_image_urls(text):
    with pytest.raises(ValueError):
        encoding.decode_data_url(text)


def test_mime_for_path():
    assert encoding.mime_for_path('shot.JPG') == 'image/jpeg'
    assert encoding.mime_for_path('shot.webp') == 'image/webp'
    assert encoding.mime_for_path('shot.txt') is None


def test_save_image_uses_suffix(tmp_path):
    target = tmp_path / 'out' / 'snap.png'
    written = encoding.save_image(_pattern(), str(target))

    assert written == str(target)
    with Image.open(written) as saved:
        assert saved.format == 'PNG'
