"""Tests for the offline registry build command."""

import json

from conftest import FakeExtractor, write_image
from tools import build_registry


def test_build_registry_file_writes_wire_format(tmp_path):
    store_dir = tmp_path / "uploads"
    write_image(store_dir / "alice" / "1.jpg", 100)
    write_image(store_dir / "alice" / "2.jpg", 0)
    write_image(store_dir / "ghost" / "1.jpg", 0)
    output = tmp_path / "labeled_faces.json"

    summary = build_registry.build_registry_file(store_dir, output, FakeExtractor())

    assert summary == {"images": 3, "labels": 1, "descriptors": 1}
    data = json.loads(output.read_text())
    assert [item["label"] for item in data] == ["alice"]
    assert len(data[0]["descriptors"][0]) == 128


def test_main_fails_for_missing_store(tmp_path):
    assert build_registry.main(["--store", str(tmp_path / "nope"), "--output", str(tmp_path / "out.json")]) == 1
