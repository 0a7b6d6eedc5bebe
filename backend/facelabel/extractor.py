"""
Descriptor extraction backed by DeepFace.

The extractor turns one decoded BGR image into at most one face descriptor.
DeepFace is imported lazily so the web app starts (and tests run) without
paying the TensorFlow import cost up front.
"""
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from . import config

logger = logging.getLogger(__name__)

NO_FACE_MESSAGE = "Face could not be detected"


@dataclass
class FaceDetection:
    """A single detected face and its descriptor."""

    bounding_box: Tuple[int, int, int, int]  # x, y, w, h
    descriptor: np.ndarray
    landmarks: Dict[str, Any] = field(default_factory=dict)
    confidence: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bounding_box": list(self.bounding_box),
            "landmarks": self.landmarks,
            "confidence": self.confidence,
            "descriptor": self.descriptor.tolist(),
        }


class DeepFaceExtractor:
    """Wraps DeepFace.represent with single-face semantics."""

    def __init__(self, model_name: str = config.MODEL_NAME, detector_backend: str = config.DETECTOR_BACKEND):
        self.model_name = model_name
        self.detector_backend = detector_backend
        self._model = None
        self._model_lock = threading.Lock()

    @property
    def models_loaded(self) -> bool:
        return self._model is not None

    def load_models(self):
        """Build the recognition model once per process, thread-safe."""
        with self._model_lock:
            if self._model is None:
                from deepface import DeepFace

                logger.info(f"Loading DeepFace model {self.model_name} (detector: {self.detector_backend})...")
                self._model = DeepFace.build_model(self.model_name)
                logger.info(f"DeepFace model {self.model_name} loaded.")
            return self._model

    def _represent(self, image: np.ndarray) -> List[Dict[str, Any]]:
        from deepface import DeepFace

        return DeepFace.represent(
            img_path=image,
            model_name=self.model_name,
            detector_backend=self.detector_backend,
            enforce_detection=True,
            align=True,
        )

    def detect(self, image: np.ndarray) -> Optional[FaceDetection]:
        """Return the most confident face in ``image``, or None if there is none."""
        self.load_models()
        try:
            faces = self._represent(image)
        except ValueError as e:
            if NO_FACE_MESSAGE in str(e):
                return None
            raise

        if not faces:
            return None

        best = max(faces, key=lambda f: f.get("face_confidence") or 0.0)
        area = best.get("facial_area") or {}
        landmarks = {
            key: list(area[key]) for key in ("left_eye", "right_eye") if area.get(key) is not None
        }
        embedding = np.asarray(best["embedding"], dtype=np.float32)
        # Unit length so clients can compare with a fixed Euclidean threshold
        embedding = embedding / max(float(np.linalg.norm(embedding)), 1e-12)
        return FaceDetection(
            bounding_box=(int(area.get("x", 0)), int(area.get("y", 0)), int(area.get("w", 0)), int(area.get("h", 0))),
            descriptor=embedding,
            landmarks=landmarks,
            confidence=float(best.get("face_confidence") or 0.0),
        )
