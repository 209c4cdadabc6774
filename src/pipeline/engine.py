"""
Pipeline engine for the O-ring gauge.

Two layers:
- DetectionPipeline: pure per-inference processing (decode -> suppress).
- PipelineEngine: the frame loop. Frames are read continuously; inference is
  throttled to one pass per `inference_interval_s` with at most one pass in
  flight on a background worker. Finished results are published to the
  RuntimeContext, which drops results older than the one already shown.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Callable, List, Optional, Sequence

from algorithms.suppression import non_max_suppression
from detection.decoder import DecodeError, decode_output
from inference.backend import InferenceBackend
from inference.preprocess import preprocess_frame
from models.config import DetectionConfig, PipelineSettings
from models.frame import FrameData, FrameResult
from observation.base import FrameSource
from runtime.context import RuntimeContext


class DetectionPipeline:
    """
    Turns one raw output tensor into suppressed detections.

    Example:
        pipeline = DetectionPipeline(DetectionConfig())
        result = pipeline.process_output(raw.data, raw.dims, sequence=42)
    """

    def __init__(self, config: DetectionConfig):
        self.config = config

    def process_output(
        self,
        data: Any,
        dims: Sequence[Any],
        sequence: int = 0,
        timestamp: Optional[float] = None,
        inference_ms: Optional[float] = None,
    ) -> FrameResult:
        """
        Decode and suppress one output tensor.

        A malformed tensor yields an empty result with `error` set; the
        caller skips the frame and carries on with the next one.
        """
        timestamp = time.time() if timestamp is None else timestamp
        try:
            candidates = decode_output(
                data,
                dims,
                confidence_threshold=self.config.confidence_threshold,
                class_names=self.config.class_names,
            )
        except DecodeError as e:
            logging.warning(f"Skipping frame {sequence}: {e}")
            return FrameResult(
                sequence=sequence,
                timestamp=timestamp,
                inference_ms=inference_ms,
                error=str(e),
            )

        detections = non_max_suppression(candidates, iou_threshold=self.config.iou_threshold)
        logging.debug(
            f"[DETECT] frame={sequence} candidates={len(candidates)} kept={len(detections)}"
        )
        return FrameResult(
            sequence=sequence,
            timestamp=timestamp,
            detections=detections,
            candidates=len(candidates),
            inference_ms=inference_ms,
        )


@dataclass
class PipelineStats:
    """Runtime statistics for the pipeline."""
    frame_count: int = 0
    inference_count: int = 0
    skipped_frames: int = 0
    decode_errors: int = 0
    stale_results: int = 0
    start_time: float = field(default_factory=time.time)
    last_stats_log_time: float = field(default_factory=time.time)
    consecutive_failures: int = 0


class PipelineEngine:
    """
    Main frame loop.

    Example:
        source = OpenCVSource(config.camera)
        backend = OnnxBackend(OnnxConfig(model_path=...))
        engine = PipelineEngine(source, backend, ctx)
        engine.run()
    """

    def __init__(
        self,
        source: FrameSource,
        backend: InferenceBackend,
        ctx: RuntimeContext,
        config: Optional[PipelineSettings] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.source = source
        self.backend = backend
        self.ctx = ctx
        self.config = config or ctx.config.pipeline
        self.pipeline = DetectionPipeline(ctx.config.detection)
        self.stats = PipelineStats()
        self._clock = clock
        self._running = False
        self._in_flight = False
        self._in_flight_lock = Lock()
        self._last_inference_time: Optional[float] = None
        self._executor: Optional[ThreadPoolExecutor] = None
        self._callbacks: List[Callable[[FrameResult], None]] = []

    def add_callback(self, callback: Callable[[FrameResult], None]) -> None:
        """Register a callback invoked with every published result."""
        self._callbacks.append(callback)

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def run(self) -> None:
        """
        Run the frame loop until stopped or the source is exhausted.

        Waits for the in-flight inference, if any, before returning.
        """
        self._running = True
        self.stats = PipelineStats()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="inference")

        try:
            self.source.open()
            logging.info(f"Pipeline started: source={self.source.source_id}")

            while self._running:
                frame_data = self.source.read()

                if frame_data is None:
                    self.stats.consecutive_failures += 1
                    if self.stats.consecutive_failures >= self.config.max_consecutive_failures:
                        logging.error(
                            f"Too many consecutive failures ({self.stats.consecutive_failures}), stopping"
                        )
                        break
                    logging.warning(
                        f"Frame read failed ({self.stats.consecutive_failures}/"
                        f"{self.config.max_consecutive_failures})"
                    )
                    time.sleep(0.1)
                    continue

                self.stats.consecutive_failures = 0
                self.stats.frame_count += 1
                if not self.submit(frame_data):
                    self.stats.skipped_frames += 1

                self._handle_periodic_tasks()

        except KeyboardInterrupt:
            logging.info("Pipeline interrupted by user")
        finally:
            self._cleanup()

    def stop(self) -> None:
        """Signal the pipeline to stop after the current frame."""
        self._running = False

    def submit(self, frame_data: FrameData) -> bool:
        """
        Hand a frame to the inference worker if the throttle allows it.

        Returns:
            False if the frame was skipped (inference busy or too soon).
        """
        now = self._clock()
        with self._in_flight_lock:
            if self._in_flight:
                return False
            if (
                self._last_inference_time is not None
                and now - self._last_inference_time <= self.config.inference_interval_s
            ):
                return False
            self._in_flight = True
            self._last_inference_time = now

        if self._executor is None:
            self._run_inference(frame_data)
        else:
            self._executor.submit(self._run_inference, frame_data)
        return True

    def process_frame(self, frame_data: FrameData) -> FrameResult:
        """Preprocess, infer and decode one frame synchronously."""
        tensor = preprocess_frame(frame_data.frame, input_size=self.ctx.config.detection.input_size)
        start = time.time()
        raw = self.backend.infer(tensor)
        inference_ms = (time.time() - start) * 1000
        return self.pipeline.process_output(
            raw.data,
            raw.dims,
            sequence=frame_data.sequence,
            timestamp=frame_data.timestamp,
            inference_ms=inference_ms,
        )

    def _run_inference(self, frame_data: FrameData) -> None:
        try:
            result = self.process_frame(frame_data)
            self.stats.inference_count += 1
            if not result.ok:
                self.stats.decode_errors += 1
            self._publish(result)
        except Exception as e:
            logging.error(f"Inference failed on frame {frame_data.sequence}: {e}")
        finally:
            with self._in_flight_lock:
                self._in_flight = False

    def _publish(self, result: FrameResult) -> None:
        if not self.ctx.accept_result(result):
            self.stats.stale_results += 1
            logging.debug(f"Dropped stale result for frame {result.sequence}")
            return

        for callback in self._callbacks:
            try:
                callback(result)
            except Exception as e:
                logging.warning(f"Callback error: {e}")

    def _handle_periodic_tasks(self) -> None:
        now = time.time()
        if now - self.stats.last_stats_log_time >= self.config.stats_log_interval:
            elapsed = max(now - self.stats.start_time, 1e-6)
            logging.info(
                f"Pipeline stats: frames={self.stats.frame_count}, "
                f"inferences={self.stats.inference_count}, "
                f"decode_errors={self.stats.decode_errors}, "
                f"fps={self.stats.frame_count / elapsed:.1f}"
            )
            self.ctx.update_system_stats({
                "fps": self.stats.frame_count / elapsed,
                "frame_count": self.stats.frame_count,
                "inference_count": self.stats.inference_count,
            })
            self.stats.last_stats_log_time = now

    def _cleanup(self) -> None:
        self._running = False
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
        self.source.close()
        logging.info(
            f"Pipeline stopped: frames={self.stats.frame_count}, "
            f"inferences={self.stats.inference_count}"
        )
