"""Command-line interface for yoloseg."""

import argparse
from pathlib import Path

from . import __version__
from .config import DEFAULT_MODEL, ProcessingConfig
from .core.io import is_camera_source

EPILOG = """\
Examples:
  yoloseg street.jpg -o street_seg.jpg
  yoloseg clip.mp4 -o clip_seg.mp4 --model yolov8s-seg.onnx
  yoloseg 0 --show                        # live camera preview
  yoloseg photo.png --model yolov8n-seg.onnx --hf-repo someone/yolov8-seg-onnx

Preview keys (--show):
  O    toggle the mask/box overlay
  S    save a snapshot next to the output path
  ESC  quit
"""


def parse_args(args=None) -> ProcessingConfig:
    """Parse command-line arguments.

    Args:
        args: Arguments to parse (defaults to sys.argv).

    Returns:
        ProcessingConfig with parsed options.
    """
    parser = argparse.ArgumentParser(
        prog="yoloseg",
        description="Run YOLOv8 instance segmentation on images, videos and cameras.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "-V", "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "input",
        type=str,
        help="Input image (.jpg, .png), video (.mp4, .avi) or camera index (0, 1, ...)",
    )

    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        help="Output image or video file (default: <input>_seg.jpg / .mp4)",
    )

    parser.add_argument(
        "--model",
        type=str,
        default=DEFAULT_MODEL,
        help=f"YOLOv8-seg ONNX model file (default: {DEFAULT_MODEL})",
    )

    parser.add_argument(
        "--hf-repo",
        type=str,
        default=None,
        help="Hugging Face Hub repository to download --model from if it is not local",
    )

    parser.add_argument(
        "--labels",
        type=str,
        default=None,
        help="JSON array of class names (default: the 80 COCO classes)",
    )

    parser.add_argument(
        "--provider",
        action="append",
        default=None,
        help="ONNX Runtime execution provider; repeat to set a priority list "
        "(default: CPUExecutionProvider)",
    )

    parser.add_argument(
        "--no-warmup",
        action="store_true",
        help="Skip the warm-up inference after loading the model",
    )

    # NMS arguments
    parser.add_argument(
        "--iou",
        type=float,
        default=0.45,
        help="IOU threshold for non-max suppression; 0.0-1.0 (default: 0.45)",
    )

    parser.add_argument(
        "--score",
        type=float,
        default=0.2,
        help="Minimum detection score; 0.0-1.0 (default: 0.2)",
    )

    parser.add_argument(
        "--max-detections",
        type=int,
        default=500,
        help="Maximum detections kept per frame (default: 500)",
    )

    # Mask arguments
    parser.add_argument(
        "--mask-threshold",
        type=float,
        default=0.5,
        help="Threshold applied to reconstructed masks; 0.0-1.0 (default: 0.5)",
    )

    parser.add_argument(
        "--mask-alpha",
        type=int,
        default=150,
        help="Opacity of mask pixels; 0=invisible, 255=opaque (default: 150)",
    )

    # Output arguments
    parser.add_argument(
        "--fps",
        type=float,
        default=30.0,
        help="Frames per second for camera recordings and the preview (default: 30)",
    )

    parser.add_argument(
        "--max-frames",
        type=int,
        default=0,
        help="Stop after this many frames; 0 = until the source ends (default: 0)",
    )

    parser.add_argument(
        "--show",
        action="store_true",
        help="Show a live preview window",
    )

    parsed = parser.parse_args(args)

    # Validate input exists
    if not is_camera_source(parsed.input) and not Path(parsed.input).exists():
        parser.error(f"Input file not found: {parsed.input}")
    if parsed.labels is not None and not Path(parsed.labels).exists():
        parser.error(f"Labels file not found: {parsed.labels}")
    for name in ("iou", "score", "mask_threshold"):
        if not 0.0 <= getattr(parsed, name) <= 1.0:
            parser.error(f"--{name.replace('_', '-')} must be between 0.0 and 1.0")
    if not 0 <= parsed.mask_alpha <= 255:
        parser.error("--mask-alpha must be between 0 and 255")
    if parsed.max_detections < 1:
        parser.error("--max-detections must be at least 1")
    if parsed.max_frames < 0:
        parser.error("--max-frames cannot be negative")
    if parsed.fps <= 0:
        parser.error("--fps must be positive")
    needs_sink = not (parsed.show or parsed.output or parsed.max_frames)
    if is_camera_source(parsed.input) and needs_sink:
        parser.error("Camera input needs --show, --output or --max-frames")

    return ProcessingConfig.from_args(
        input_path=parsed.input,
        output_path=parsed.output,
        model_path=parsed.model,
        hf_repo=parsed.hf_repo,
        providers=parsed.provider,
        warmup=not parsed.no_warmup,
        labels_path=parsed.labels,
        max_detections=parsed.max_detections,
        iou_threshold=parsed.iou,
        score_threshold=parsed.score,
        mask_threshold=parsed.mask_threshold,
        mask_alpha=parsed.mask_alpha,
        fps=parsed.fps,
        max_frames=parsed.max_frames,
        show=parsed.show,
    )
