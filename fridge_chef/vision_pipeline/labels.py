"""Class-index → ingredient name table."""

import json
import logging
import os
from typing import List, Sequence

logger = logging.getLogger(__name__)

UNKNOWN_LABEL = "Unknown"


def load_labels(path: str) -> List[str]:
    """
    Load the label table.

    Accepts:
    - JSON list: ["egg", "tomato", ...]
    - JSON id2label mapping: {"0": "egg", "1": "tomato", ...}
    - plain text, one name per line
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Label table not found at {path}")

    with open(path, "r", encoding="utf-8") as f:
        raw = f.read()

    if path.endswith(".json"):
        data = json.loads(raw)
        if isinstance(data, dict):
            labels = [str(data[k]) for k in sorted(data, key=int)]
        elif isinstance(data, list):
            labels = [str(name) for name in data]
        else:
            raise ValueError(f"Unsupported label table format in {path}")
    else:
        labels = [line.strip() for line in raw.splitlines() if line.strip()]

    logger.info("Loaded %d labels from %s", len(labels), path)
    return labels


def label_for(labels: Sequence[str], class_index: int, default: str = UNKNOWN_LABEL) -> str:
    if 0 <= class_index < len(labels):
        return labels[class_index]
    return default
