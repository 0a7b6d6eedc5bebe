"""Shared pytest fixtures for the face label server."""

import threading
import time
from pathlib import Path
from types import SimpleNamespace

import cv2
import numpy as np
import pytest
from fastapi.testclient import TestClient

from backend.facelabel import config
from backend.facelabel.extractor import FaceDetection
from backend.facelabel.main import create_app
from backend.facelabel.sms import SmsSender
from backend.facelabel.store import ImageStore

DESCRIPTOR_SIZE = 128


def image_bytes(value: int, size: int = 32) -> bytes:
    """PNG bytes of a uniform gray image; lossless so the pixel value survives."""
    ok, buf = cv2.imencode(".png", np.full((size, size, 3), value, dtype=np.uint8))
    assert ok
    return buf.tobytes()


def write_image(path: Path, value: int) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(image_bytes(value))
    return path


class FakeExtractor:
    """Stands in for DeepFace: dark images (mean < 10) have no face.

    A face's descriptor is the mean pixel value / 255 repeated, so tests can
    tell images apart by their gray level.
    """

    def __init__(self, delay: float = 0.0):
        self.delay = delay
        self.calls = 0
        self.models_loaded = False
        self._lock = threading.Lock()

    def load_models(self):
        self.models_loaded = True

    def detect(self, image):
        with self._lock:
            self.calls += 1
        if self.delay:
            time.sleep(self.delay)
        mean = float(image.mean())
        if mean < 10:
            return None
        h, w = image.shape[:2]
        return FaceDetection(
            bounding_box=(0, 0, w, h),
            descriptor=np.full(DESCRIPTOR_SIZE, mean / 255.0, dtype=np.float32),
            confidence=0.99,
        )


class FakeMessages:
    def __init__(self, error=None):
        self.sent = []
        self.error = error

    def create(self, body, from_, to):
        if self.error is not None:
            raise self.error
        self.sent.append({"body": body, "from_": from_, "to": to})
        return SimpleNamespace(sid=f"SM{len(self.sent):032d}")


class FakeTwilioClient:
    def __init__(self, error=None):
        self.messages = FakeMessages(error)


@pytest.fixture
def store(tmp_path) -> ImageStore:
    return ImageStore(tmp_path / "uploads")


@pytest.fixture
def extractor() -> FakeExtractor:
    return FakeExtractor()


@pytest.fixture
def twilio_client() -> FakeTwilioClient:
    return FakeTwilioClient()


@pytest.fixture
def sms_sender(twilio_client) -> SmsSender:
    return SmsSender("AC" + "0" * 32, "token", "+15550000000", client=twilio_client)


@pytest.fixture
def app(store, extractor, sms_sender):
    return create_app(store=store, extractor=extractor, sms=sms_sender, public_dir=config.PUBLIC_DIR)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c
