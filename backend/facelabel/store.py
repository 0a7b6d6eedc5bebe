"""
Upload image store: one directory per label under the uploads root.
"""
import logging
import os
import re
import time
from pathlib import Path
from typing import Iterator, List, Tuple, Union

from . import config
from .errors import InvalidLabelError

logger = logging.getLogger(__name__)

# Letters, digits, underscore, hyphen and inner spaces; never a path separator or dot
LABEL_PATTERN = re.compile(r"^[A-Za-z0-9_-][A-Za-z0-9 _-]{0,63}$")


def validate_label(label) -> str:
    """Return the stripped label, or raise InvalidLabelError if it is unsafe as a directory name."""
    if not isinstance(label, str):
        raise InvalidLabelError(label)
    cleaned = label.strip()
    if not LABEL_PATTERN.match(cleaned):
        raise InvalidLabelError(label)
    return cleaned


class ImageStore:
    """Directory-per-label tree of uploaded photos."""

    def __init__(self, root: Union[str, Path] = config.UPLOADS_DIR, allowed_ext=config.ALLOWED_EXT):
        self.root = Path(root)
        self.allowed_ext = tuple(ext.lower() for ext in allowed_ext)

    def label_dir(self, label: str) -> Path:
        return self.root / validate_label(label)

    def save_upload(self, label: str, data: bytes) -> Path:
        """Persist one uploaded image under ``label`` and return its path.

        The file is named by the current time in milliseconds with a ``.jpg``
        extension, whatever the payload encoding. A taken name moves to the
        next free millisecond so every call creates exactly one new file.
        """
        directory = self.label_dir(label)
        if not directory.exists():
            logger.info(f"Directory does not exist. Creating: {directory}")
        directory.mkdir(parents=True, exist_ok=True)

        stamp = int(time.time() * 1000)
        while True:
            path = directory / f"{stamp}.jpg"
            try:
                fh = open(path, "xb")
            except FileExistsError:
                stamp += 1
                continue
            break

        try:
            with fh:
                fh.write(data)
        except OSError:
            path.unlink(missing_ok=True)
            raise

        logger.info(f"Saved upload for label {directory.name} as: {path.name}")
        return path

    def labels(self) -> List[str]:
        """Label directories under the root, sorted by name. Missing root → []."""
        if not self.root.is_dir():
            return []
        return sorted(
            entry.name
            for entry in os.scandir(self.root)
            if entry.is_dir() and not entry.name.startswith(".")
        )

    def images(self, label: str) -> List[Path]:
        """Image files for ``label``, sorted by name (upload order for timestamp names)."""
        directory = self.root / label
        return sorted(
            Path(entry.path)
            for entry in os.scandir(directory)
            if entry.is_file() and not entry.name.startswith(".") and entry.name.lower().endswith(self.allowed_ext)
        )

    def walk(self) -> Iterator[Tuple[str, List[Path]]]:
        """Yield ``(label, image paths)`` for every label directory."""
        for label in self.labels():
            yield label, self.images(label)

    def count_images(self) -> int:
        return sum(len(images) for _, images in self.walk())
