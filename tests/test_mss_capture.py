import numpy as np

from src.capture import mss_capture
from src.capture.base_capture import Region, widget_region


class _FakeSct:
    def __init__(self):
        self.monitors = []
        self.closed = False

    def grab(self, monitor):
        self.monitors.append(monitor)
        frame = np.zeros((monitor['height'], monitor['width'], 4), dtype=np.uint8)
        frame[:, :, 0] = 10   # B
        frame[:, :, 1] = 20   # G
        frame[:, :, 2] = 30   # R
        frame[:, :, 3] = 255
        return frame

    def close(self):
        self.closed = True


def test_grab_image_converts_bgra_to_rgb(monkeypatch):
    sct = _FakeSct()
    monkeypatch.setattr(mss_capture.mss, "mss", lambda: sct)
    capture = mss_capture.MSSCapture()

    image = capture.grab_image(Region(left=5, top=6, width=4, height=3))

    assert sct.monitors == [{'left': 5, 'top': 6, 'width': 4, 'height': 3}]
    assert image.mode == 'RGB'
    assert image.size == (4, 3)
    assert image.getpixel((0, 0)) == (30, 20, 10)

    capture.close()
    assert sct.closed


def test_empty_region_never_opens_mss(monkeypatch):
    def _fail():
        raise AssertionError("mss opened for an empty region")

    monkeypatch.setattr(mss_capture.mss, "mss", _fail)
    capture = mss_capture.MSSCapture()

    assert capture.grab(Region(0, 0, 0, 10)) is None
    assert capture.grab_image(Region(0, 0, 10, 0)) is None
    capture.close()


def test_failed_grab_returns_none(monkeypatch):
    class _Broken(_FakeSct):
        def grab(self, monitor):
            raise RuntimeError("display gone")

    monkeypatch.setattr(mss_capture.mss, "mss", _Broken)

    assert mss_capture.MSSCapture().grab(Region(0, 0, 2, 2)) is None


def test_widget_region_uses_screen_geometry(document, canvas):
    assert widget_region(canvas) == Region(left=10, top=20, width=32, height=16)
