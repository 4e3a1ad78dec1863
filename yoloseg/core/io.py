"""Video, camera and image I/O utilities."""

from pathlib import Path
from typing import Tuple

import cv2
import numpy as np
from PIL import Image


VIDEO_EXTENSIONS = {".mp4", ".avi", ".mov", ".mkv", ".webm"}


def is_video_file(filename: str) -> bool:
    """Whether a path names a video container the capture backend can open."""
    return Path(filename).suffix.lower() in VIDEO_EXTENSIONS


def is_camera_source(source: str) -> bool:
    """Check if a source string names a camera index such as '0'."""
    return str(source).isdigit()


def load_image(path: str) -> np.ndarray:
    """Load an image file as an RGB array.

    Raises:
        IOError: If the file cannot be decoded.
    """
    try:
        return np.array(Image.open(path).convert("RGB"))
    except (OSError, ValueError) as e:
        raise IOError(f"Cannot read image file: {path}") from e


def save_image(path: str, image: np.ndarray) -> None:
    """Save an RGB array to an image file, creating parent directories."""
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(image).save(path)


class VideoReader:
    """Read frames from a video file, a camera or a single image.

    Mirrors the state a browser video element exposes: ``video_width`` drops
    to 0 once the source is exhausted or closed, and ``stream_attached`` is
    True while a live camera stream is open.
    """

    def __init__(self, path: str):
        """Initialize the reader.

        Args:
            path: Path to video or image file, or a camera index.

        Raises:
            IOError: If the source cannot be opened.
        """
        self.path = path
        self.is_camera = is_camera_source(path)
        self.is_video = self.is_camera or is_video_file(path)
        self._cap = None
        self._image = None
        self._fps = 30
        self._frame_count = 1
        self._width = 0
        self._height = 0

        if self.is_video:
            self._cap = cv2.VideoCapture(int(path) if self.is_camera else path)
            if not self._cap.isOpened():
                kind = "camera" if self.is_camera else "video file"
                raise IOError(f"Cannot open {kind}: {path}")
            self._fps = self._cap.get(cv2.CAP_PROP_FPS) or 30
            self._frame_count = int(self._cap.get(cv2.CAP_PROP_FRAME_COUNT))
            self._width = int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH))
            self._height = int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        else:
            self._image = load_image(path)
            self._height, self._width = self._image.shape[:2]

    @property
    def fps(self) -> float:
        """Get frames per second."""
        return self._fps

    @property
    def frame_count(self) -> int:
        """Get total frame count (1 for images, 0 or less for cameras)."""
        return self._frame_count

    @property
    def video_width(self) -> int:
        """Width of the current source, 0 once it has ended or been closed."""
        return self._width

    @property
    def video_height(self) -> int:
        """Height of the current source, 0 once it has ended or been closed."""
        return self._height

    @property
    def stream_attached(self) -> bool:
        """Whether a live camera stream is still open."""
        return self.is_camera and self._cap is not None and self._cap.isOpened()

    def read_frame(self) -> Tuple[bool, np.ndarray | None]:
        """Read the next frame.

        Returns:
            Tuple of (success, frame). Frame is RGB numpy array.
        """
        if self.is_video:
            if self._cap is None:
                return False, None
            ret, frame = self._cap.read()
            if ret:
                frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
            else:
                self.close()
            return ret, frame
        else:
            if self._image is not None:
                img = self._image
                self._image = None  # Only return once
                return True, img
            self._width = self._height = 0
            return False, None

    def close(self):
        """Release resources."""
        if self._cap is not None:
            self._cap.release()
            self._cap = None
        self._image = None
        self._width = self._height = 0

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class VideoWriter:
    """mp4 writer that takes its frame size from the first frame it gets.

    The container is created on the first write; later frames of another
    size are resized to match it.

    Attributes:
        path: Output video path.
        fps: Frames per second of the container.
        size: (width, height), None until the first frame.
        frames_written: Number of frames written so far.
    """

    def __init__(self, path: str, fps: float = 30.0):
        self.path = path
        self.fps = fps
        self.size = None
        self.frames_written = 0
        self._writer = None

    def _open(self, width: int, height: int) -> None:
        Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        fourcc = cv2.VideoWriter_fourcc(*"mp4v")
        self._writer = cv2.VideoWriter(self.path, fourcc, self.fps, (width, height))
        if not self._writer.isOpened():
            raise IOError(f"Cannot create video writer: {self.path}")
        self.size = (width, height)

    def write_frame(self, frame: np.ndarray) -> None:
        """Append an RGB frame."""
        if self._writer is None:
            height, width = frame.shape[:2]
            self._open(width, height)
        if (frame.shape[1], frame.shape[0]) != self.size:
            frame = cv2.resize(frame, self.size)
        self._writer.write(cv2.cvtColor(frame, cv2.COLOR_RGB2BGR))
        self.frames_written += 1

    def close(self) -> None:
        if self._writer is not None:
            self._writer.release()
            self._writer = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
