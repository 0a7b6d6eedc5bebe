#!/usr/bin/env python3
"""
Offline labeled face descriptor builder.

Scans an upload store (one directory per label), extracts one descriptor per
image with DeepFace and writes the same JSON that /get-labeled-faces serves.

Usage:
  python tools/build_registry.py --store backend/facelabel/public/uploads --output labeled_faces.json
"""

import argparse
import asyncio
import json
import logging
import os
import sys
import time
from pathlib import Path

from tqdm import tqdm

# Add parent directory to path to allow importing from backend modules
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from backend.facelabel.config import DETECTOR_BACKEND, MODEL_NAME, UPLOADS_DIR
from backend.facelabel.extractor import DeepFaceExtractor
from backend.facelabel.registry import RegistryBuilder
from backend.facelabel.store import ImageStore

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)


def build_registry_file(store_dir: Path, output: Path, extractor) -> dict:
    """Build the registry for ``store_dir``, write it to ``output`` and return a summary."""
    store = ImageStore(store_dir)
    total_images = store.count_images()
    logger.info(f"Found {total_images} images under {store_dir}")

    builder = RegistryBuilder(store, extractor)
    with tqdm(total=total_images, desc="Extracting descriptors") as pbar:
        def on_image(path, found):
            pbar.update(1)

        entries = asyncio.run(builder.build(on_image=on_image))

    wire = [entry.to_dict() for entry in entries]
    output.write_text(json.dumps(wire))

    return {
        "images": total_images,
        "labels": len(wire),
        "descriptors": sum(len(entry["descriptors"]) for entry in wire),
    }


def main(argv=None):
    parser = argparse.ArgumentParser(description="Build labeled face descriptors from an upload store")
    parser.add_argument("--store", type=str, default=str(UPLOADS_DIR), help="Upload store root (one folder per label)")
    parser.add_argument("--output", type=str, required=True, help="JSON file to write")
    parser.add_argument("--model", type=str, default=MODEL_NAME, help="Model to use for descriptors")
    parser.add_argument("--detector", type=str, default=DETECTOR_BACKEND, help="Face detector to use")
    args = parser.parse_args(argv)

    store_dir = Path(args.store)
    if not store_dir.is_dir():
        logger.error(f"Folder not found: {store_dir}")
        return 1

    start_time = time.time()
    summary = build_registry_file(store_dir, Path(args.output), DeepFaceExtractor(args.model, args.detector))

    logger.info("=== Summary ===")
    logger.info(f"Total images: {summary['images']}")
    logger.info(f"Labels with faces: {summary['labels']}")
    logger.info(f"Descriptors written: {summary['descriptors']}")
    logger.info(f"Total time: {time.time() - start_time:.2f} seconds")
    return 0


if __name__ == "__main__":
    sys.exit(main())
