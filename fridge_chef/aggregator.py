import logging
import threading
from typing import Dict, List, Optional

from fridge_chef.vision_pipeline.frame_processor import ProcessedImage

logger = logging.getLogger(__name__)


class IngredientAggregator:
    """
    Ordered collection of processed photos and the ingredient set derived from it.

    global_labels() is recomputed from the live collection on every call, so it
    always equals the union of labels of the images currently held. One lock
    covers both mutations and derivations.
    """

    def __init__(self):
        self._images: List[ProcessedImage] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._images)

    def add(self, image: ProcessedImage) -> None:
        with self._lock:
            self._images.append(image)
            count = len(self._images)
        logger.info("Added image %s with labels %s (%d images)", image.id, list(image.labels), count)

    def remove(self, image_id: str) -> bool:
        with self._lock:
            before = len(self._images)
            self._images = [img for img in self._images if img.id != image_id]
            removed = len(self._images) != before
        if removed:
            logger.info("Removed image %s", image_id)
        return removed

    def clear(self) -> None:
        with self._lock:
            self._images = []
        logger.info("Cleared all images")

    def get(self, image_id: str) -> Optional[ProcessedImage]:
        with self._lock:
            for img in self._images:
                if img.id == image_id:
                    return img
        return None

    def images(self) -> List[ProcessedImage]:
        with self._lock:
            return list(self._images)

    def global_labels(self) -> List[str]:
        """Union of labels over all held images, first-seen order, no duplicates."""
        merged: Dict[str, None] = {}
        with self._lock:
            for img in self._images:
                for label in img.labels:
                    merged.setdefault(label)
        return list(merged)
