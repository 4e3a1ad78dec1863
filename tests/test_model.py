import unittest
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import numpy as np

from yoloseg.config import ModelConfig
from yoloseg.core.shapes import InputShape
from yoloseg.detection.model import OnnxSegmentationModel, load_model, resolve_model_path


def fake_session(input_shape, output_shapes):
    session = MagicMock()
    session.get_inputs.return_value = [SimpleNamespace(name="images", shape=input_shape)]
    session.get_outputs.return_value = [
        SimpleNamespace(name=f"output{i}", shape=shape)
        for i, shape in enumerate(output_shapes)
    ]
    session.run.return_value = [np.zeros(shape, dtype=np.float32) for shape in output_shapes]
    return session


class TestOnnxSegmentationModel(unittest.TestCase):
    @patch('yoloseg.detection.model.InferenceSession')
    def test_init_channel_first_graph(self, mock_session):
        mock_session.return_value = fake_session(
            [1, 3, 640, 640], [[1, 116, 8400], [1, 32, 160, 160]]
        )

        model = OnnxSegmentationModel("yolov8n-seg.onnx")

        mock_session.assert_called_once_with(
            "yolov8n-seg.onnx", providers=["CPUExecutionProvider"]
        )
        self.assertEqual(model.input_shape, (1, 640, 640, 3))
        self.assertEqual(model.input_name, "images")
        self.assertEqual(model.output_shapes, [[1, 116, 8400], [1, 32, 160, 160]])

    @patch('yoloseg.detection.model.InferenceSession')
    def test_execute_transposes_feed_for_channel_first_graph(self, mock_session):
        session = fake_session([1, 3, 320, 480], [[1, 38, 10], [1, 32, 80, 120]])
        mock_session.return_value = session
        model = OnnxSegmentationModel("model.onnx")
        tensor = np.random.default_rng(0).random((1, 320, 480, 3), dtype=np.float32)

        detections, prototypes = model.execute(tensor)

        feed = session.run.call_args[0][1]["images"]
        self.assertEqual(feed.shape, (1, 3, 320, 480))
        np.testing.assert_array_equal(feed[0, 1], tensor[0, :, :, 1])
        self.assertEqual(detections.shape, (1, 38, 10))
        self.assertEqual(prototypes.shape, (1, 32, 80, 120))

    @patch('yoloseg.detection.model.InferenceSession')
    def test_outputs_ordered_by_rank(self, mock_session):
        mock_session.return_value = fake_session(
            [1, 640, 640, 3], [[1, 160, 160, 32], [1, 116, 8400]]
        )
        model = OnnxSegmentationModel("model.onnx")

        detections, prototypes = model.execute(np.zeros((1, 640, 640, 3), np.float32))

        self.assertEqual(model.output_shapes, [[1, 116, 8400], [1, 160, 160, 32]])
        self.assertEqual(detections.ndim, 3)
        self.assertEqual(prototypes.ndim, 4)

    @patch('yoloseg.detection.model.InferenceSession')
    def test_dynamic_axes_use_default_size(self, mock_session):
        mock_session.return_value = fake_session(
            ["batch", 3, "height", "width"], [[1, 116, 8400], [1, 32, 160, 160]]
        )

        model = OnnxSegmentationModel("model.onnx")

        self.assertEqual((model.input_height, model.input_width), (640, 640))

    @patch('yoloseg.detection.model.InferenceSession')
    def test_execute_rejects_wrong_input_shape(self, mock_session):
        mock_session.return_value = fake_session(
            [1, 3, 640, 640], [[1, 116, 8400], [1, 32, 160, 160]]
        )
        model = OnnxSegmentationModel("model.onnx")

        with self.assertRaises(ValueError):
            model.execute(np.zeros((1, 480, 640, 3), np.float32))

    @patch('yoloseg.detection.model.InferenceSession')
    def test_single_output_model_is_rejected(self, mock_session):
        mock_session.return_value = fake_session([1, 3, 640, 640], [[1, 84, 8400]])

        with self.assertRaises(ValueError):
            OnnxSegmentationModel("detect-only.onnx")

    @patch('yoloseg.detection.model.InferenceSession')
    def test_load_failure_is_runtime_error(self, mock_session):
        mock_session.side_effect = Exception("invalid protobuf")

        with self.assertRaises(RuntimeError):
            OnnxSegmentationModel("broken.onnx")

    @patch('yoloseg.detection.model.InferenceSession')
    def test_load_model_warms_up_once(self, mock_session):
        session = fake_session([1, 3, 640, 640], [[1, 116, 8400], [1, 32, 160, 160]])
        mock_session.return_value = session

        with patch('yoloseg.detection.model.os.path.exists', return_value=True):
            load_model(ModelConfig(path="yolov8n-seg.onnx"))

        session.run.assert_called_once()
        feed = session.run.call_args[0][1]["images"]
        self.assertTrue((feed == 1).all())

    @patch('yoloseg.detection.model.InferenceSession')
    def test_load_model_without_warmup(self, mock_session):
        session = fake_session([1, 3, 640, 640], [[1, 116, 8400], [1, 32, 160, 160]])
        mock_session.return_value = session

        with patch('yoloseg.detection.model.os.path.exists', return_value=True):
            load_model(ModelConfig(path="yolov8n-seg.onnx", warmup=False))

        session.run.assert_not_called()


class TestInputShape(unittest.TestCase):
    def test_channel_last_shape(self):
        shape = InputShape.from_model_shape([1, 640, 640, 3])
        self.assertFalse(shape.channels_first)
        self.assertEqual(shape.as_tuple(), (1, 640, 640, 3))

    def test_rejects_non_4d_shape(self):
        with self.assertRaises(ValueError):
            InputShape.from_model_shape([1, 3, 640])


class TestResolveModelPath(unittest.TestCase):
    def test_existing_file(self):
        with patch('yoloseg.detection.model.os.path.exists', return_value=True):
            self.assertEqual(resolve_model_path("local.onnx"), "local.onnx")

    def test_missing_file_without_repo(self):
        with patch('yoloseg.detection.model.os.path.exists', return_value=False):
            with self.assertRaises(FileNotFoundError):
                resolve_model_path("missing.onnx")

    @patch('yoloseg.detection.model.hf_hub_download')
    def test_download_from_hub(self, mock_download):
        mock_download.return_value = "/cache/yolov8n-seg.onnx"

        with patch('yoloseg.detection.model.os.path.exists', return_value=False):
            path = resolve_model_path("yolov8n-seg.onnx", "someone/yolo")

        self.assertEqual(path, "/cache/yolov8n-seg.onnx")
        mock_download.assert_called_once_with(
            repo_id="someone/yolo", filename="yolov8n-seg.onnx"
        )

    @patch('yoloseg.detection.model.hf_hub_download')
    def test_download_failure(self, mock_download):
        mock_download.side_effect = OSError("offline")

        with patch('yoloseg.detection.model.os.path.exists', return_value=False):
            with self.assertRaises(RuntimeError):
                resolve_model_path("yolov8n-seg.onnx", "someone/yolo")


if __name__ == '__main__':
    unittest.main()
