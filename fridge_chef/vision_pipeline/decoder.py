import logging
from dataclasses import dataclass
from typing import List, Tuple

import numpy as np

logger = logging.getLogger(__name__)

DEFAULT_INPUT_SIZE = 640


@dataclass(frozen=True)
class Detection:
    """One accepted box: (x, y, width, height) in original-image pixels, top-left origin."""

    box: Tuple[float, float, float, float]
    score: float
    class_index: int


def decode_detections(
    raw_output: np.ndarray,
    image_width: int,
    image_height: int,
    confidence_threshold: float = 0.4,
    input_size: int = DEFAULT_INPUT_SIZE,
) -> List[Detection]:
    """
    Decode a raw YOLOv8 head into detections.

    raw_output is the model's native [1, 4 + num_classes, num_boxes] tensor.
    Each box row holds center-x, center-y, width, height in model-input pixels
    followed by per-class probabilities. A row is kept only when its best class
    probability is strictly greater than confidence_threshold. No overlap
    suppression is applied; rows come back in the model's order.
    """
    output = np.asarray(raw_output)
    if output.ndim != 3 or output.shape[0] != 1 or output.shape[1] < 5:
        raise ValueError(
            f"Expected detector output shaped [1, 4 + classes, boxes], got {output.shape}"
        )
    if image_width <= 0 or image_height <= 0:
        raise ValueError(f"Invalid image size: {image_width}x{image_height}")

    # [1, 4 + C, N] -> [N, 4 + C]
    rows = output.transpose(0, 2, 1)[0]
    probs = rows[:, 4:]
    class_ids = probs.argmax(axis=1)
    scores = probs.max(axis=1)
    keep = np.flatnonzero(scores > confidence_threshold)

    # x terms scale with width, y terms with height
    scale_x = image_width / input_size
    scale_y = image_height / input_size

    detections: List[Detection] = []
    for i in keep:
        x, y, w, h = (float(v) for v in rows[i, :4])
        detections.append(
            Detection(
                box=(
                    (x - w / 2) * scale_x,
                    (y - h / 2) * scale_y,
                    w * scale_x,
                    h * scale_y,
                ),
                score=float(scores[i]),
                class_index=int(class_ids[i]),
            )
        )

    logger.debug(
        "Decoded %d/%d boxes above threshold %s (image=%sx%s)",
        len(detections),
        rows.shape[0],
        confidence_threshold,
        image_width,
        image_height,
    )
    return detections
