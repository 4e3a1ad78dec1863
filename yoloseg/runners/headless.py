"""Headless batch processing runner."""

import sys
from pathlib import Path

import onnxruntime
from tqdm import tqdm

from ..config import ProcessingConfig
from ..core.io import (
    VideoReader,
    VideoWriter,
    is_camera_source,
    is_video_file,
    load_image,
    save_image,
)
from ..detection.yolo_seg import YOLOSegDetector, detect_frame
from ..render import compose
from .driver import FrameDriver


def validate_providers(config: ProcessingConfig) -> list[str]:
    """Check that the requested ONNX Runtime providers are available.

    Args:
        config: Processing configuration.

    Returns:
        List of error messages for unavailable providers.
    """
    available = set(onnxruntime.get_available_providers())
    return [
        f"Execution provider {provider} is not available "
        f"(installed: {', '.join(sorted(available))})"
        for provider in config.model.providers
        if provider not in available
    ]


def is_stream_input(input_path: str) -> bool:
    """Videos and cameras go through the frame driver; images do not."""
    return is_camera_source(input_path) or is_video_file(input_path)


def default_output_path(input_path: str) -> str:
    """Output path next to the input: <stem>_seg.jpg or <stem>_seg.mp4."""
    if is_camera_source(input_path):
        return f"camera{input_path}_seg.mp4"
    path = Path(input_path)
    suffix = ".mp4" if is_video_file(input_path) else ".jpg"
    return str(path.with_name(f"{path.stem}_seg{suffix}"))


def create_detector(config: ProcessingConfig, verbose: bool = False) -> YOLOSegDetector:
    """Load the model and labels named by the config."""
    return YOLOSegDetector.from_config(config, verbose=verbose)


def run_image(config: ProcessingConfig, detector: YOLOSegDetector, output_path: str) -> int:
    """Detect a single image and save the annotated result.

    Returns:
        Process exit code.
    """
    frame = load_image(config.input_path)
    canvas = detector.create_canvas()
    detections = detect_frame(frame, detector, canvas)
    save_image(output_path, compose(frame, canvas))

    if detections:
        scores = ", ".join(f"{d.label} {d.score:.2f}" for d in detections)
        print(f"Detections: {scores}")
    else:
        print("No objects detected.")
    print(f"Output saved to: {output_path}")
    return 0


def run_video(config: ProcessingConfig, detector: YOLOSegDetector, output_path: str) -> int:
    """Detect every frame of a video or camera stream and write a video.

    Returns:
        Process exit code.
    """
    with VideoReader(config.input_path) as reader:
        total = reader.frame_count if reader.frame_count > 0 else None
        if total and config.output.max_frames:
            total = min(total, config.output.max_frames)
        fps = config.output.fps if reader.is_camera else reader.fps
        progress = tqdm(total=total, desc="Processing")
        writer = VideoWriter(output_path, fps)

        def write(frame, detections):
            writer.write_frame(compose(frame, driver.canvas))
            progress.update(1)

        driver = FrameDriver(
            reader,
            detector,
            on_frame=write,
            max_frames=config.output.max_frames,
        )
        try:
            driver.run()
        except KeyboardInterrupt:
            driver.halt()
            print("Interrupted.")
        finally:
            progress.close()
            writer.close()

    if driver.error is not None:
        print(f"Stopped after {driver.frames} frame(s): {driver.error}", file=sys.stderr)
        return 1
    if writer.frames_written == 0:
        print("No frames were read from the source.", file=sys.stderr)
        return 1
    print(f"Output saved to: {output_path}")
    return 0


def run_headless(config: ProcessingConfig) -> int:
    """Run headless batch processing.

    Args:
        config: Processing configuration.

    Returns:
        Process exit code.
    """
    provider_errors = validate_providers(config)
    if provider_errors:
        print("Requested execution providers are unavailable:", file=sys.stderr)
        for error in provider_errors:
            print(f"  - {error}", file=sys.stderr)
        print("\nUse --provider CPUExecutionProvider to run on the CPU.", file=sys.stderr)
        return 1

    output_path = config.output_path or default_output_path(config.input_path)
    stream = is_stream_input(config.input_path)
    detector = create_detector(config, verbose=not stream)

    if stream:
        return run_video(config, detector, output_path)
    return run_image(config, detector, output_path)
