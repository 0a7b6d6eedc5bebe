"""Client-side matching against the labeled descriptors served by the backend.

Descriptors are compared with Euclidean distance; the closest reference wins
if it is under the threshold, otherwise the face is ``unknown``.
"""

from typing import Dict, List, NamedTuple, Sequence

import numpy as np

UNKNOWN = "unknown"


class Match(NamedTuple):
    label: str
    distance: float


class FaceMatcher:
    """Nearest-reference matcher over ``[{label, descriptors}]`` wire data."""

    def __init__(self, labeled_faces: List[Dict], threshold: float = 0.8):
        self.threshold = threshold
        self.labels: List[str] = []
        rows = []
        for entry in labeled_faces:
            for descriptor in entry["descriptors"]:
                self.labels.append(entry["label"])
                rows.append(descriptor)
        self.references = np.asarray(rows, dtype=np.float32) if rows else None

    def distances(self, descriptor: Sequence[float]) -> np.ndarray:
        if self.references is None:
            return np.empty(0, dtype=np.float32)
        probe = np.asarray(descriptor, dtype=np.float32)
        return np.linalg.norm(self.references - probe, axis=1)

    def best_match(self, descriptor: Sequence[float]) -> Match:
        distances = self.distances(descriptor)
        if distances.size == 0:
            return Match(UNKNOWN, float("inf"))
        idx = int(np.argmin(distances))
        distance = float(distances[idx])
        if distance < self.threshold:
            return Match(self.labels[idx], distance)
        return Match(UNKNOWN, distance)
