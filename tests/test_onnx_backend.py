"""
Tests for the ONNX Runtime backend with a mocked runtime session.
"""

import sys
from unittest.mock import MagicMock, patch

import numpy as np

from inference.onnx_backend import OnnxBackend, OnnxConfig


def _mock_ort(output):
    ort = MagicMock()
    ort.get_available_providers.return_value = ["CPUExecutionProvider"]
    session = ort.InferenceSession.return_value
    session.get_inputs.return_value = [MagicMock(name="input")]
    session.get_outputs.return_value = [MagicMock(name="output")]
    session.run.return_value = [output]
    return ort


class TestOnnxBackend:
    def test_infer_returns_flat_output_and_dims(self):
        output = np.arange(2 * 11, dtype=np.float64).reshape(1, 2, 11)
        ort = _mock_ort(output)
        with patch.dict(sys.modules, {"onnxruntime": ort}):
            backend = OnnxBackend(OnnxConfig(model_path="model.onnx"))
            raw = backend.infer(np.zeros((1, 3, 640, 640), dtype=np.float32))

        assert raw.dims == (1, 2, 11)
        assert raw.data.shape == (22,)
        assert raw.data.dtype == np.float32
        assert raw.data[11] == 11.0

    def test_unavailable_providers_fall_back_to_cpu(self):
        ort = _mock_ort(np.zeros((1, 0, 11)))
        with patch.dict(sys.modules, {"onnxruntime": ort}):
            OnnxBackend(OnnxConfig(model_path="model.onnx", providers=("CUDAExecutionProvider",)))

        _, kwargs = ort.InferenceSession.call_args
        assert kwargs["providers"] == ["CPUExecutionProvider"]

    def test_thread_count_applied(self):
        ort = _mock_ort(np.zeros((1, 0, 11)))
        with patch.dict(sys.modules, {"onnxruntime": ort}):
            OnnxBackend(OnnxConfig(model_path="model.onnx", intra_op_num_threads=2))

        assert ort.SessionOptions.return_value.intra_op_num_threads == 2
