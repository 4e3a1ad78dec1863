from pathlib import Path

import cv2
import numpy as np
import pytest
from PIL import Image

from conftest import LABELS, FakeSegModel, make_outputs, solid_coeffs
from yoloseg.config import ProcessingConfig
from yoloseg.core.io import VideoReader, VideoWriter
from yoloseg.detection.yolo_seg import YOLOSegDetector
from yoloseg.runners import headless


@pytest.fixture
def fake_detector(monkeypatch):
    detections, prototypes = make_outputs([(320, 320, 200, 200, 1, 0.9, solid_coeffs())])
    detector = YOLOSegDetector(FakeSegModel(detections, prototypes), LABELS)
    monkeypatch.setattr(headless, "create_detector", lambda config, verbose=False: detector)
    monkeypatch.setattr(headless, "validate_providers", lambda config: [])
    return detector


def write_video(path: Path, frames: int, size=(64, 48)):
    writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*"MJPG"), 10, size)
    for i in range(frames):
        writer.write(np.full((size[1], size[0], 3), 40 * i, dtype=np.uint8))
    writer.release()


def test_default_output_path():
    assert headless.default_output_path("photos/cat.png") == str(Path("photos/cat_seg.jpg"))
    assert headless.default_output_path("clip.MOV") == "clip_seg.mp4"
    assert headless.default_output_path("1") == "camera1_seg.mp4"


def test_image_is_annotated_and_saved(tmp_path, fake_detector, capsys):
    input_path = tmp_path / "street.png"
    Image.fromarray(np.zeros((480, 640, 3), dtype=np.uint8)).save(input_path)
    output_path = tmp_path / "out" / "street_seg.png"
    config = ProcessingConfig.from_args(str(input_path), str(output_path))

    assert headless.run_headless(config) == 0

    result = np.array(Image.open(output_path))
    assert result.shape == (480, 640, 3)
    # mask centre takes the "car" colour
    assert result[240, 320].sum() > 0
    assert result[5, 600].sum() == 0
    out = capsys.readouterr().out
    assert "car 0.90" in out
    assert str(output_path) in out


def test_video_is_processed_frame_by_frame(tmp_path, fake_detector):
    input_path = tmp_path / "clip.avi"
    write_video(input_path, frames=3)
    output_path = tmp_path / "clip_seg.mp4"
    config = ProcessingConfig.from_args(str(input_path), str(output_path))

    assert headless.run_headless(config) == 0

    assert output_path.exists()
    assert fake_detector.model.calls == 3


def test_video_respects_max_frames(tmp_path, fake_detector):
    input_path = tmp_path / "clip.avi"
    write_video(input_path, frames=5)
    config = ProcessingConfig.from_args(
        str(input_path), str(tmp_path / "short.mp4"), max_frames=2
    )

    assert headless.run_headless(config) == 0
    assert fake_detector.model.calls == 2


def test_model_failure_gives_error_exit(tmp_path, fake_detector, capsys):
    input_path = tmp_path / "clip.avi"
    write_video(input_path, frames=2)
    fake_detector.model.error = RuntimeError("device lost")
    config = ProcessingConfig.from_args(str(input_path), str(tmp_path / "out.mp4"))

    assert headless.run_headless(config) == 1
    assert "device lost" in capsys.readouterr().err


def test_unavailable_provider(monkeypatch, tmp_path, capsys):
    monkeypatch.setattr(
        headless.onnxruntime, "get_available_providers", lambda: ["CPUExecutionProvider"]
    )
    config = ProcessingConfig.from_args("in.jpg", providers=["CUDAExecutionProvider"])

    assert headless.run_headless(config) == 1
    assert "CUDAExecutionProvider" in capsys.readouterr().err


def test_writer_takes_size_from_first_frame(tmp_path):
    path = tmp_path / "nested" / "out.mp4"

    with VideoWriter(str(path), fps=10) as writer:
        assert writer.size is None
        writer.write_frame(np.zeros((48, 64, 3), dtype=np.uint8))
        writer.write_frame(np.zeros((100, 100, 3), dtype=np.uint8))

    assert writer.size == (64, 48)
    assert writer.frames_written == 2
    capture = cv2.VideoCapture(str(path))
    assert int(capture.get(cv2.CAP_PROP_FRAME_WIDTH)) == 64
    capture.release()


def test_image_reader_reports_zero_width_after_its_frame(tmp_path):
    path = tmp_path / "one.png"
    Image.fromarray(np.zeros((10, 20, 3), dtype=np.uint8)).save(path)

    with VideoReader(str(path)) as reader:
        assert reader.video_width == 20
        ret, frame = reader.read_frame()
        assert ret and frame.shape == (10, 20, 3)
        assert reader.read_frame() == (False, None)
        assert reader.video_width == 0
        assert not reader.stream_attached
