"""
ONNX Runtime inference backend.

Loads the exported YOLOv5 model and runs it on CPU (or any provider listed in
the config). onnxruntime is imported lazily so the rest of the project, and
the tests, do not need it.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import List, Sequence

import numpy as np

from .backend import InferenceBackend, RawOutput


@dataclass(frozen=True)
class OnnxConfig:
    model_path: str
    providers: Sequence[str] = field(default_factory=lambda: ("CPUExecutionProvider",))
    intra_op_num_threads: int = 4


class OnnxBackend(InferenceBackend):
    def __init__(self, cfg: OnnxConfig):
        self.cfg = cfg
        try:
            import onnxruntime as ort  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "onnxruntime is not installed. Install with `pip install onnxruntime`."
            ) from e

        options = ort.SessionOptions()
        options.graph_optimization_level = ort.GraphOptimizationLevel.ORT_ENABLE_ALL
        options.execution_mode = ort.ExecutionMode.ORT_SEQUENTIAL
        options.intra_op_num_threads = cfg.intra_op_num_threads

        available: List[str] = ort.get_available_providers()
        providers = [p for p in cfg.providers if p in available] or ["CPUExecutionProvider"]

        start = time.time()
        self._session = ort.InferenceSession(cfg.model_path, sess_options=options, providers=providers)
        self._input_name = self._session.get_inputs()[0].name
        self._output_name = self._session.get_outputs()[0].name
        logging.info(
            f"Model loaded in {(time.time() - start) * 1000:.1f} ms: "
            f"{cfg.model_path} providers={providers}"
        )

    def infer(self, tensor: np.ndarray) -> RawOutput:
        outputs = self._session.run([self._output_name], {self._input_name: tensor})
        output = np.asarray(outputs[0], dtype=np.float32)
        return RawOutput(data=output.reshape(-1), dims=tuple(int(d) for d in output.shape))
