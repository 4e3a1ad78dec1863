"""Live preview runner using a pygame window."""

import sys
from pathlib import Path

import numpy as np
import pygame

from ..config import ProcessingConfig
from ..core.io import VideoReader, VideoWriter, save_image
from ..detection.yolo_seg import detect_frame
from ..render import compose
from .driver import FrameDriver
from .headless import (
    create_detector,
    default_output_path,
    is_stream_input,
    validate_providers,
)


HELP_LINES = [
    "O - Overlay: {overlay}",
    "S - Save snapshot | ESC - Quit",
]


class PreviewWindow:
    """pygame window showing annotated frames with a key help overlay."""

    def __init__(self, width: int, height: int, title: str = "yoloseg"):
        pygame.init()
        self.screen = pygame.display.set_mode((width, height))
        self.font = pygame.font.SysFont("Arial", 14)
        self.clock = pygame.time.Clock()
        self.show_overlay = True
        self.quit_requested = False
        self.snapshot_requested = False
        self.snapshots = 0
        pygame.display.set_caption(title)
        print(f"Pygame window initialized with size {width}x{height}")

    def poll(self) -> None:
        """Handle window and keyboard events."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.quit_requested = True
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    self.quit_requested = True
                elif event.key == pygame.K_o:
                    self.show_overlay = not self.show_overlay
                    print(f"Overlay {'enabled' if self.show_overlay else 'disabled'}")
                elif event.key == pygame.K_s:
                    self.snapshot_requested = True

    def show(self, image: np.ndarray) -> None:
        """Blit an RGB image and the help text."""
        surface = pygame.surfarray.make_surface(np.swapaxes(image, 0, 1))
        y_offset = 5
        for line in HELP_LINES:
            text = line.format(overlay="On" if self.show_overlay else "Off")
            text_surface = self.font.render(text, True, (255, 255, 255))
            text_rect = text_surface.get_rect(topleft=(5, y_offset))
            bg_surface = pygame.Surface((text_rect.width, text_rect.height))
            bg_surface.set_alpha(150)
            bg_surface.fill((0, 0, 0))
            surface.blit(bg_surface, text_rect)
            surface.blit(text_surface, text_rect)
            y_offset += text_rect.height + 2
        self.screen.blit(surface, (0, 0))
        pygame.display.flip()

    def present(self, frame: np.ndarray, canvas, output_path: str) -> np.ndarray:
        """Show a frame with its canvas, save a snapshot if asked, poll events.

        Returns:
            The image that was shown.
        """
        image = compose(frame, canvas) if self.show_overlay else frame
        self.show(image)
        if self.snapshot_requested:
            self.snapshot_requested = False
            self.snapshots += 1
            stem = Path(output_path).with_suffix("")
            snapshot_path = f"{stem}_{self.snapshots:03d}.png"
            save_image(snapshot_path, compose(frame, canvas))
            print(f"Snapshot saved to: {snapshot_path}")
        self.poll()
        return image

    def close(self) -> None:
        pygame.quit()


def run_interactive(config: ProcessingConfig) -> int:
    """Show detections live until the source ends or the window is closed.

    Args:
        config: Processing configuration.

    Returns:
        Process exit code.
    """
    provider_errors = validate_providers(config)
    if provider_errors:
        for error in provider_errors:
            print(f"  - {error}", file=sys.stderr)
        return 1

    detector = create_detector(config)
    output_path = config.output_path or default_output_path(config.input_path)
    writer = None
    window = None

    try:
        with VideoReader(config.input_path) as reader:
            width = reader.video_width or detector.model_width
            height = reader.video_height or detector.model_height
            window = PreviewWindow(width, height)

            if not is_stream_input(config.input_path):
                _, frame = reader.read_frame()
                canvas = detector.create_canvas()
                detect_frame(frame, detector, canvas)
                while not window.quit_requested:
                    window.present(frame, canvas, output_path)
                    window.clock.tick(config.display.fps)
                return 0

            if config.output_path:
                writer = VideoWriter(output_path, config.output.fps)

            def on_frame(frame, detections):
                image = window.present(frame, driver.canvas, output_path)
                if writer is not None:
                    writer.write_frame(image)
                if window.quit_requested:
                    driver.halt()

            driver = FrameDriver(
                reader,
                detector,
                on_frame=on_frame,
                clock=window.clock,
                fps=config.display.fps,
                max_frames=config.output.max_frames,
            )
            driver.run()
    finally:
        if writer is not None and writer.frames_written:
            writer.close()
            print(f"Video saved as '{output_path}'")
        if window is not None:
            window.close()

    if driver.error is not None:
        print(f"Stopped after {driver.frames} frame(s): {driver.error}", file=sys.stderr)
        return 1
    return 0
