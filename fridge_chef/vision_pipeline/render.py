from typing import Sequence

import cv2
import numpy as np

from .decoder import Detection
from .labels import label_for

BOX_COLOR = (0, 255, 0)
TEXT_COLOR = (0, 0, 0)
BOX_THICKNESS = 4
TAG_HEIGHT = 30
FONT = cv2.FONT_HERSHEY_SIMPLEX
FONT_SCALE = 0.7
FONT_THICKNESS = 2


def draw_detections(
    image: np.ndarray,
    detections: Sequence[Detection],
    labels: Sequence[str],
) -> np.ndarray:
    """
    Draw every detection onto a copy of an RGB image.

    Each box gets an outline and a filled tag above it reading "<label> <score>%".
    Tags near the top edge are not clamped and may fall outside the canvas.
    """
    canvas = image.copy()

    for det in detections:
        x, y, w, h = (int(round(v)) for v in det.box)
        text = f"{label_for(labels, det.class_index)} {round(det.score * 100)}%"

        cv2.rectangle(canvas, (x, y), (x + w, y + h), BOX_COLOR, BOX_THICKNESS)

        (text_w, _), _ = cv2.getTextSize(text, FONT, FONT_SCALE, FONT_THICKNESS)
        cv2.rectangle(
            canvas,
            (x, y - TAG_HEIGHT),
            (x + text_w + 10, y),
            BOX_COLOR,
            thickness=cv2.FILLED,
        )
        cv2.putText(
            canvas,
            text,
            (x + 5, y - 8),
            FONT,
            FONT_SCALE,
            TEXT_COLOR,
            FONT_THICKNESS,
            cv2.LINE_AA,
        )

    return canvas


def encode_jpeg(image: np.ndarray, quality: int = 90) -> bytes:
    """Encode an RGB array as JPEG bytes."""
    bgr = cv2.cvtColor(image, cv2.COLOR_RGB2BGR)
    ok, buf = cv2.imencode(".jpg", bgr, [int(cv2.IMWRITE_JPEG_QUALITY), quality])
    if not ok:
        raise ValueError("cv2.imencode() failed to encode JPEG")
    return buf.tobytes()
