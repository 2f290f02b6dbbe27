import asyncio
import inspect
import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Protocol, Sequence, Tuple

import numpy as np

from .decoder import DEFAULT_INPUT_SIZE, Detection, decode_detections
from .labels import label_for
from .preprocess import ImageSource, decode_image, to_model_input
from .render import draw_detections

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE_THRESHOLD = 0.4


class InferenceEngine(Protocol):
    def execute(self, input_tensor: np.ndarray) -> np.ndarray: ...


@dataclass(frozen=True, eq=False)
class ProcessedImage:
    id: str
    original_image: np.ndarray = field(repr=False)
    annotated_image: np.ndarray = field(repr=False)
    labels: Tuple[str, ...]
    filename: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class FrameProcessor:
    """
    One photo end-to-end:

    decode → resize/normalize → detector → decode boxes → overlay → label set

    The engine must already be loaded; callers gate on readiness before
    constructing a processor.
    """

    def __init__(
        self,
        engine: InferenceEngine,
        labels: Sequence[str],
        confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
        input_size: int = DEFAULT_INPUT_SIZE,
    ):
        self.engine = engine
        self.labels = list(labels)
        self.confidence_threshold = confidence_threshold
        self.input_size = input_size
        self._warned_class_counts: set = set()

    async def _run_engine(self, model_input: np.ndarray) -> np.ndarray:
        if inspect.iscoroutinefunction(self.engine.execute):
            return await self.engine.execute(model_input)
        return await asyncio.to_thread(self.engine.execute, model_input)

    def _check_class_count(self, raw_output: np.ndarray) -> None:
        num_classes = raw_output.shape[1] - 4
        if num_classes != len(self.labels) and num_classes not in self._warned_class_counts:
            self._warned_class_counts.add(num_classes)
            logger.warning(
                "Label table has %d entries but detector reports %d classes",
                len(self.labels),
                num_classes,
            )

    def collect_labels(self, detections: Sequence[Detection]) -> Tuple[str, ...]:
        """Unique ingredient names in first-seen order; unknown class ids are skipped."""
        found: Dict[str, None] = {}
        for det in detections:
            name = label_for(self.labels, det.class_index, default="")
            if not name:
                logger.warning("Class index %s is outside the label table, skipping", det.class_index)
                continue
            found.setdefault(name)
        return tuple(found)

    async def process(self, source: ImageSource, filename: Optional[str] = None) -> ProcessedImage:
        start = time.time()

        original = await asyncio.to_thread(decode_image, source)
        height, width = original.shape[:2]
        t_decoded = time.time()

        # Intermediate tensors live only inside this block, on every exit path
        buffers: Dict[str, np.ndarray] = {}
        try:
            buffers["input"] = await asyncio.to_thread(to_model_input, original, self.input_size)
            buffers["output"] = await self._run_engine(buffers["input"])
            detections: List[Detection] = decode_detections(
                buffers["output"],
                width,
                height,
                self.confidence_threshold,
                self.input_size,
            )
            self._check_class_count(np.asarray(buffers["output"]))
        finally:
            buffers.clear()
        t_detected = time.time()

        annotated = await asyncio.to_thread(draw_detections, original, detections, self.labels)
        labels = self.collect_labels(detections)

        result = ProcessedImage(
            id=uuid.uuid4().hex,
            original_image=original,
            annotated_image=annotated,
            labels=labels,
            filename=filename,
        )

        logger.info(
            "[PIPELINE] Processed %s (%sx%s): %d detections, labels=%s, "
            "decode_ms=%s, detect_ms=%s, total_ms=%s",
            filename or result.id,
            width,
            height,
            len(detections),
            list(labels),
            round((t_decoded - start) * 1000, 2),
            round((t_detected - t_decoded) * 1000, 2),
            round((time.time() - start) * 1000, 2),
        )
        return result
