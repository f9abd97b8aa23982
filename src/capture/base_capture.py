from dataclasses import dataclass
from typing import Any, Optional, Protocol

import numpy as np
from PIL import Image


@dataclass
class Region:
    left: int
    top: int
    width: int
    height: int

    @property
    def empty(self) -> bool:
        return self.width <= 0 or self.height <= 0


class ScreenCapture(Protocol):
    def grab(self, region: Region) -> Optional[np.ndarray]:
        ...

    def grab_image(self, region: Region) -> Optional[Image.Image]:
        ...

    def close(self) -> None:
        ...


def widget_region(widget: Any) -> Region:
    """Screen rectangle currently covered by a Tk widget."""
    return Region(
        left=int(widget.winfo_rootx()),
        top=int(widget.winfo_rooty()),
        width=int(widget.winfo_width()),
        height=int(widget.winfo_height()),
    )
