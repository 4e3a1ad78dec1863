"""Frame-by-frame scheduling for video sources."""

import sys
from enum import Enum
from typing import Callable, List, Optional, Protocol

import numpy as np

from ..detection.base import Detection
from ..detection.yolo_seg import YOLOSegDetector, detect_frame
from ..render import Canvas


class DriverState(Enum):
    """Frame driver states."""

    RUNNING = "running"
    STOPPED = "stopped"


class FrameSource(Protocol):
    """What the driver needs from a video source (see core.io.VideoReader)."""

    video_width: int
    stream_attached: bool

    def read_frame(self):
        ...


class Clock(Protocol):
    """Paces the loop, e.g. pygame.time.Clock."""

    def tick(self, framerate: int = 0):
        ...


class FrameDriver:
    """Run detection on a video source one frame at a time.

    Each tick either stops the driver, when the source has no width and no
    live stream, or runs one detect-and-render cycle. The next tick is only
    scheduled once the cycle's completion callback has fired, so a single
    cycle is in flight at a time and frames are never buffered.

    Attributes:
        state: Current DriverState.
        frames: Number of completed cycles.
        error: Exception that stopped the driver, if any.
        detections: Detections of the last completed cycle.
    """

    def __init__(
        self,
        source: FrameSource,
        detector: YOLOSegDetector,
        canvas: Optional[Canvas] = None,
        on_frame: Optional[Callable[[np.ndarray, List[Detection]], None]] = None,
        clock: Optional[Clock] = None,
        fps: int = 0,
        max_frames: int = 0,
    ):
        """Initialize the driver.

        Args:
            source: Video source.
            detector: Segmentation detector.
            canvas: Canvas to draw on; a model-sized one is created if omitted.
            on_frame: Called with (frame, detections) after each cycle.
            clock: Optional clock used to pace ticks.
            fps: Frame rate passed to ``clock.tick``.
            max_frames: Halt after this many cycles (0 = unlimited).
        """
        self.source = source
        self.detector = detector
        self.canvas = canvas or detector.create_canvas()
        self.on_frame = on_frame
        self.clock = clock
        self.fps = fps
        self.max_frames = max_frames
        self.state = DriverState.RUNNING
        self.frames = 0
        self.error: Optional[Exception] = None
        self.detections: List[Detection] = []
        self._cycle_done = False

    @property
    def running(self) -> bool:
        return self.state is DriverState.RUNNING

    def source_available(self) -> bool:
        """False once the source has no width and no attached stream."""
        return not (self.source.video_width == 0 and not self.source.stream_attached)

    def stop(self) -> None:
        """Clear the canvas and stop scheduling."""
        if self.state is DriverState.RUNNING:
            self.canvas.clear()
            self.state = DriverState.STOPPED

    def halt(self) -> None:
        """Stop scheduling, keeping the last frame on the canvas."""
        self.state = DriverState.STOPPED

    def _complete_cycle(self) -> None:
        self.frames += 1
        self._cycle_done = True

    def tick(self) -> bool:
        """Process one animation tick.

        Returns:
            True if another tick should be scheduled.
        """
        if not self.running:
            return False
        if not self.source_available():
            self.stop()
            return False

        ret, frame = self.source.read_frame()
        if not ret:
            # The source has just ended; the next tick observes it and stops.
            return True

        self._cycle_done = False
        try:
            self.detections = detect_frame(
                frame, self.detector, self.canvas, callback=self._complete_cycle
            )
            if self.on_frame is not None:
                self.on_frame(frame, self.detections)
        except Exception as e:
            self.error = e
            print(f"Detection stopped on frame {self.frames + 1}: {e}", file=sys.stderr)
            self.stop()
            return False

        if self.max_frames and self.frames >= self.max_frames:
            self.halt()
        return self.running and self._cycle_done

    def run(self) -> int:
        """Tick until the driver stops.

        Returns:
            Number of completed cycles.
        """
        while self.tick():
            if self.clock is not None:
                self.clock.tick(self.fps)
        return self.frames
