import logging
from typing import Optional

import cv2
import mss
import numpy as np
from PIL import Image

from .base_capture import Region

LOGGER = logging.getLogger("CanvasMirror.Capture")


class MSSCapture:
    def __init__(self) -> None:
        self._sct = None

    def _ensure(self):
        # mss grabs from the thread that created it; open lazily on first use
        if self._sct is None:
            self._sct = mss.mss()
        return self._sct

    def grab(self, region: Region) -> Optional[np.ndarray]:
        if region.empty:
            return None
        try:
            sct_img = self._ensure().grab({
                'left': int(region.left),
                'top': int(region.top),
                'width': int(region.width),
                'height': int(region.height),
            })
            arr = np.array(sct_img)
            # BGRA -> BGR
            return arr[:, :, :3]
        except Exception as exc:
            LOGGER.debug("Screen grab of %s failed: %s", region, exc)
            return None

    def grab_image(self, region: Region) -> Optional[Image.Image]:
        frame = self.grab(region)
        if frame is None:
            return None
        return frame_to_image(frame)

    def close(self) -> None:
        if self._sct is None:
            return
        try:
            self._sct.close()
        except Exception:
            pass
        self._sct = None


def frame_to_image(frame: np.ndarray) -> Image.Image:
    """Convert a BGR/BGRA frame from mss into an RGB Pillow image."""
    if frame.ndim == 3 and frame.shape[-1] == 4:
        rgb = cv2.cvtColor(frame, cv2.COLOR_BGRA2RGB)
    else:
        rgb = cv2.cvtColor(np.ascontiguousarray(frame), cv2.COLOR_BGR2RGB)
    return Image.fromarray(rgb)
