import logging
import os
from typing import Optional

import numpy as np
import onnxruntime as ort

logger = logging.getLogger(__name__)


class OnnxInferenceEngine:
    """
    YOLOv8 ONNX session wrapper.

    execute() takes a channels-last (1, S, S, 3) float32 tensor in [0, 1] and
    returns the raw head output, typically (1, 4 + classes, boxes). Decoding is
    left to the caller.
    """

    def __init__(self, model_path: str):
        self.model_path = model_path
        logger.info("Initializing OnnxInferenceEngine with model: %s", model_path)
        # CPU-only for maximum portability
        self.session = ort.InferenceSession(
            model_path,
            providers=["CPUExecutionProvider"],
        )
        model_input = self.session.get_inputs()[0]
        # Cache input / output names for faster calls
        self.input_name = model_input.name
        self.output_name = self.session.get_outputs()[0].name

        # Typical shapes: [1, 3, H, W] (ultralytics export) or [1, H, W, 3]
        in_shape = model_input.shape
        self.channels_first = len(in_shape) == 4 and in_shape[1] == 3
        logger.info(
            "Detector input=%s shape=%s channels_first=%s",
            self.input_name,
            in_shape,
            self.channels_first,
        )

    def execute(self, input_tensor: np.ndarray) -> np.ndarray:
        if input_tensor.ndim != 4 or input_tensor.shape[-1] != 3:
            raise ValueError(
                f"Expected input tensor shaped (1, S, S, 3), got {input_tensor.shape}"
            )

        feed = input_tensor.astype(np.float32, copy=False)
        if self.channels_first:
            feed = np.ascontiguousarray(feed.transpose(0, 3, 1, 2))  # (1, 3, S, S)

        return self.session.run([self.output_name], {self.input_name: feed})[0]

    def warmup(self, input_size: int = 640) -> None:
        """Run one blank frame so the first real request does not pay session setup."""
        dummy = np.zeros((1, input_size, input_size, 3), dtype=np.float32)
        output = self.execute(dummy)
        logger.info("Detector warm-up done, output shape: %s", output.shape)


def load_engine(model_path: str, input_size: int = 640, warmup: bool = True) -> Optional[OnnxInferenceEngine]:
    """
    Build the inference engine.

    Returns:
        OnnxInferenceEngine instance, or None if the model is missing or fails to load.
    """
    if not os.path.exists(model_path):
        logger.error("Detector model not found at %s", model_path)
        return None

    try:
        engine = OnnxInferenceEngine(model_path)
        if warmup:
            engine.warmup(input_size)
    except Exception as e:
        logger.error("Failed to initialize detector from %s: %s", model_path, e)
        return None

    return engine
