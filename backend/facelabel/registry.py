"""
Labeled face descriptor registry.

The builder walks the upload store and turns every image into at most one
descriptor; the registry caches the result for the life of the process and
serves it as JSON for client-side matching.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from .errors import ImageDecodeError
from .store import ImageStore
from .tasks import run_in_worker
from .utils import bgr_from_path

logger = logging.getLogger(__name__)


@dataclass
class LabeledDescriptors:
    """One label and the descriptors of every image where a face was found."""

    label: str
    descriptors: List[np.ndarray] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "descriptors": [np.asarray(d, dtype=np.float32).tolist() for d in self.descriptors],
        }


class RegistryBuilder:
    """Builds labeled descriptors from an ImageStore using a descriptor extractor.

    ``extractor`` needs a ``detect(image)`` method returning an object with a
    ``descriptor`` attribute, or None when the image has no face.
    """

    def __init__(self, store: ImageStore, extractor):
        self.store = store
        self.extractor = extractor

    def describe_image(self, path: Path) -> Optional[np.ndarray]:
        """Decode one image and extract its descriptor. Runs on a worker thread.

        An unreadable or corrupt file is logged and yields None. Extractor
        errors propagate.
        """
        try:
            image = bgr_from_path(path)
        except (ImageDecodeError, OSError) as e:
            logger.error(f"Skipping unreadable image {path}: {e}")
            return None
        detection = self.extractor.detect(image)
        if detection is None:
            return None
        return np.asarray(detection.descriptor, dtype=np.float32)

    async def build(self, on_image: Optional[Callable[[Path, bool], None]] = None) -> List[LabeledDescriptors]:
        """Scan the whole store and return one entry per label with at least one face.

        Unreadable or corrupt images are logged and skipped. Any other error
        (directory enumeration, extractor failure) propagates and nothing is
        returned.
        """
        labels = self.store.labels()
        logger.info(f"Labels found: {labels}")

        registry: List[LabeledDescriptors] = []
        for label in labels:
            images = self.store.images(label)
            logger.info(f"Images found for label {label}: {len(images)}")

            descriptors = []
            for path in images:
                descriptor = await run_in_worker(self.describe_image, path)
                if descriptor is not None:
                    descriptors.append(descriptor)
                if on_image is not None:
                    on_image(path, descriptor is not None)

            if descriptors:
                registry.append(LabeledDescriptors(label, descriptors))
            else:
                logger.info(f"No faces detected for label {label}; omitted")

        logger.info(
            f"Processed labeled face descriptors: {len(registry)} labels, "
            f"{sum(len(entry.descriptors) for entry in registry)} descriptors"
        )
        return registry


class LabeledDescriptorRegistry:
    """Process-wide cache of the built registry with a single-flight build guard.

    An empty cache counts as "not built", so reads keep retrying until a build
    yields at least one label. ``invalidate`` and ``rebuild`` let callers pick
    a refresh policy.
    """

    def __init__(self, builder: RegistryBuilder):
        self.builder = builder
        self._entries: List[LabeledDescriptors] = []
        self._lock = asyncio.Lock()
        self._building = False
        self.build_count = 0
        self._generation = 0
        self.last_error: Optional[str] = None

    @property
    def entries(self) -> List[LabeledDescriptors]:
        return list(self._entries)

    @property
    def is_built(self) -> bool:
        return bool(self._entries)

    async def _build_locked(self) -> List[LabeledDescriptors]:
        self._building = True
        try:
            while True:
                generation = self._generation
                try:
                    entries = await self.builder.build()
                except Exception as e:
                    self.last_error = str(e)
                    logger.error(f"Error loading labeled images: {e}")
                    raise
                if generation == self._generation:
                    break
                # Invalidated mid-build; the scan may have missed new uploads
                logger.info("Labeled face descriptors invalidated during build. Building again...")
        finally:
            self._building = False
        self.build_count += 1
        self.last_error = None
        self._entries = entries
        return self.entries

    async def get_or_build(self) -> List[LabeledDescriptors]:
        """Return the cached registry, building it first if it is empty."""
        if self._entries:
            logger.debug("Labeled face descriptors already loaded.")
            return self.entries

        async with self._lock:
            # Another caller may have finished the build while we waited
            if self._entries:
                return self.entries
            logger.info("No labeled face descriptors found. Loading from images...")
            return await self._build_locked()

    async def rebuild(self) -> List[LabeledDescriptors]:
        """Drop the cache and build again, sharing the guard with get_or_build."""
        async with self._lock:
            self._entries = []
            return await self._build_locked()

    def invalidate(self):
        """Forget the cached registry; the next read rebuilds it."""
        logger.info("Labeled face descriptors invalidated.")
        self._generation += 1
        self._entries = []

    def to_wire_format(self) -> List[Dict[str, Any]]:
        return [entry.to_dict() for entry in self._entries]

    def status(self) -> Dict[str, Any]:
        """``built`` means a non-empty cache; ``build_count`` also counts builds that found no faces."""
        return {
            "built": self.is_built,
            "build_count": self.build_count,
            "building": self._building,
            "label_count": len(self._entries),
            "last_error": self.last_error,
        }
