from __future__ import annotations

import pytest

from src.mirror import mirror_image, resolver
from fake_tk import FakeCanvas, FakeCapture, FakeFrame, FakePhotoImage, FakeRoot


@pytest.fixture
def document(monkeypatch):
    """Fake Tk root; canvases are FakeCanvas and photos never touch Tk."""
    monkeypatch.setattr(resolver, "SURFACE_TYPES", (FakeCanvas,))
    monkeypatch.setattr(mirror_image.ImageTk, "PhotoImage", FakePhotoImage)
    return FakeRoot()


@pytest.fixture
def stage(document):
    return FakeFrame(document, name='stage', width=200, height=100)


@pytest.fixture
def canvas(stage):
    return FakeCanvas(stage, name='mycanvas', width=32, height=16)


@pytest.fixture
def capture():
    return FakeCapture()
