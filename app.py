"""
Canvas Mirror - demo application.
Draws an animated canvas and mirrors it into an image label beneath it.
"""
import argparse
import logging
import tkinter as tk

from src.utils.settings import load_settings
from src.mirror.config import config_from_settings
from src.core.canvas_mirror import CanvasMirror


class BouncingBoard:
    """Animated canvas used as the mirrored surface."""

    def __init__(self, master: tk.Misc, width: int, height: int, background: str, frame_ms: int) -> None:
        self.canvas = tk.Canvas(master, name='board', width=width, height=height,
                                background=background, highlightthickness=0)
        self.canvas.pack()
        self._frame_ms = max(1, int(frame_ms))
        self._dx, self._dy = 4, 3
        self._ball = self.canvas.create_oval(20, 20, 60, 60, fill='#f2aa4c', outline='')
        self._on_frame = None

    def start(self, on_frame=None) -> None:
        self._on_frame = on_frame
        self._step()

    def _step(self) -> None:
        x1, y1, x2, y2 = self.canvas.coords(self._ball)
        w = self.canvas.winfo_width() or int(self.canvas['width'])
        h = self.canvas.winfo_height() or int(self.canvas['height'])
        if x1 + self._dx < 0 or x2 + self._dx > w:
            self._dx = -self._dx
        if y1 + self._dy < 0 or y2 + self._dy > h:
            self._dy = -self._dy
        self.canvas.move(self._ball, self._dx, self._dy)
        if self._on_frame is not None:
            self._on_frame()
        self.canvas.after(self._frame_ms, self._step)


def main():
    """Main application entry point."""
    parser = argparse.ArgumentParser(description="Mirror a Tk canvas into an image label.")
    parser.add_argument('--settings', default='settings.json', help='settings file')
    parser.add_argument('--export', metavar='PATH', help='save one snapshot to PATH and exit')
    args = parser.parse_args()

    settings = load_settings(args.settings)
    logging.basicConfig(
        level=getattr(logging, str(settings.get('log_level', 'INFO')).upper(), logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    demo = settings.get('demo', {})
    root = tk.Tk()
    root.title('Canvas Mirror')
    container = tk.Frame(root, name='stage',
                         width=int(demo.get('width', 480)), height=int(demo.get('height', 320)))
    container.pack(fill='both', expand=True)

    board = BouncingBoard(container, int(demo.get('width', 480)), int(demo.get('height', 320)),
                          str(demo.get('background', '#101820')), int(demo.get('frame_ms', 33)))

    config = config_from_settings(settings)
    engine = CanvasMirror(root, config)
    trigger = engine.activate()

    print(f"Surface: {config.surface!r}")
    print(f"Mode: {config.mode.name}")
    print(f"Format: {config.file_type}, quality {config.quality}")

    if args.export:
        def _export_and_quit() -> None:
            written = engine.export(args.export)
            print(f"Exported: {written}" if written else "Export failed: canvas not available")
            engine.deactivate()
            root.destroy()
        root.after(500, _export_and_quit)
    else:
        board.start(on_frame=trigger)

    def _on_close() -> None:
        engine.deactivate()
        root.destroy()

    root.protocol('WM_DELETE_WINDOW', _on_close)
    root.mainloop()


if __name__ == '__main__':
    main()
