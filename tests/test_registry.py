"""Tests for the registry builder and the cached labeled descriptor registry."""

import asyncio
import json

import numpy as np
import pytest

from backend.facelabel.registry import LabeledDescriptorRegistry, RegistryBuilder
from conftest import FakeExtractor, write_image


def _registry(store, extractor):
    return LabeledDescriptorRegistry(RegistryBuilder(store, extractor))


def _as_map(entries):
    return {entry.label: entry.descriptors for entry in entries}


def test_label_with_some_faces_keeps_only_detected_descriptors(store, extractor):
    write_image(store.root / "alice" / "1.jpg", 100)
    write_image(store.root / "alice" / "2.jpg", 0)  # no face
    write_image(store.root / "alice" / "3.jpg", 200)

    entries = asyncio.run(RegistryBuilder(store, extractor).build())

    assert [e.label for e in entries] == ["alice"]
    d1, d2 = entries[0].descriptors
    assert d1[0] == pytest.approx(100 / 255)
    assert d2[0] == pytest.approx(200 / 255)
    assert extractor.calls == 3


def test_label_without_faces_is_omitted(store, extractor):
    write_image(store.root / "alice" / "1.jpg", 90)
    write_image(store.root / "ghost" / "1.jpg", 0)
    write_image(store.root / "ghost" / "2.jpg", 5)
    (store.root / "empty").mkdir()

    entries = asyncio.run(RegistryBuilder(store, extractor).build())

    assert list(_as_map(entries)) == ["alice"]


def test_missing_store_root_builds_empty_registry(store, extractor):
    assert asyncio.run(RegistryBuilder(store, extractor).build()) == []


def test_corrupt_image_is_skipped_and_build_continues(store, extractor):
    write_image(store.root / "alice" / "1.jpg", 100)
    (store.root / "alice" / "2.jpg").write_bytes(b"definitely not a jpeg")
    write_image(store.root / "bob" / "1.jpg", 150)

    entries = _as_map(asyncio.run(RegistryBuilder(store, extractor).build()))

    assert len(entries["alice"]) == 1
    assert len(entries["bob"]) == 1


def test_progress_callback_sees_every_image(store, extractor):
    write_image(store.root / "alice" / "1.jpg", 100)
    write_image(store.root / "alice" / "2.jpg", 0)
    seen = []

    asyncio.run(RegistryBuilder(store, extractor).build(on_image=lambda path, found: seen.append((path.name, found))))

    assert seen == [("1.jpg", True), ("2.jpg", False)]


def test_get_or_build_is_idempotent_once_cached(store, extractor):
    write_image(store.root / "alice" / "1.jpg", 100)
    registry = _registry(store, extractor)

    async def scenario():
        first = await registry.get_or_build()
        write_image(store.root / "bob" / "1.jpg", 150)  # uploaded after the build
        second = await registry.get_or_build()
        return first, second

    first, second = asyncio.run(scenario())

    assert registry.build_count == 1
    assert [e.label for e in second] == ["alice"]
    assert np.array_equal(first[0].descriptors[0], second[0].descriptors[0])
    assert registry.to_wire_format() == [first[0].to_dict()]


def test_concurrent_first_reads_share_one_build(store):
    write_image(store.root / "alice" / "1.jpg", 100)
    write_image(store.root / "alice" / "2.jpg", 120)
    extractor = FakeExtractor(delay=0.05)
    registry = _registry(store, extractor)

    async def scenario():
        return await asyncio.gather(*(registry.get_or_build() for _ in range(5)))

    results = asyncio.run(scenario())

    assert registry.build_count == 1
    assert extractor.calls == 2
    wires = [[entry.to_dict() for entry in result] for result in results]
    assert all(wire == wires[0] for wire in wires)


def test_empty_build_is_retried_on_next_read(store, extractor):
    registry = _registry(store, extractor)

    async def scenario():
        await registry.get_or_build()
        write_image(store.root / "alice" / "1.jpg", 100)
        return await registry.get_or_build()

    entries = asyncio.run(scenario())

    assert registry.build_count == 2
    assert [e.label for e in entries] == ["alice"]


def test_failed_build_leaves_cache_empty_and_is_retried(store, extractor, monkeypatch):
    write_image(store.root / "alice" / "1.jpg", 100)
    registry = _registry(store, extractor)

    def broken(image):
        raise RuntimeError("model exploded")

    monkeypatch.setattr(extractor, "detect", broken)
    with pytest.raises(RuntimeError):
        asyncio.run(registry.get_or_build())

    assert registry.to_wire_format() == []
    assert registry.status() == {"built": False, "build_count": 0, "building": False, "label_count": 0,
                                 "last_error": "model exploded"}

    monkeypatch.undo()
    entries = asyncio.run(registry.get_or_build())
    assert [e.label for e in entries] == ["alice"]
    assert registry.last_error is None


def test_invalidate_and_rebuild_pick_up_new_uploads(store, extractor):
    write_image(store.root / "alice" / "1.jpg", 100)
    registry = _registry(store, extractor)

    asyncio.run(registry.get_or_build())
    write_image(store.root / "bob" / "1.jpg", 150)

    registry.invalidate()
    assert registry.to_wire_format() == []
    assert [e.label for e in asyncio.run(registry.get_or_build())] == ["alice", "bob"]

    write_image(store.root / "carol" / "1.jpg", 180)
    assert [e.label for e in asyncio.run(registry.rebuild())] == ["alice", "bob", "carol"]
    assert registry.build_count == 3


def test_wire_format_round_trips(store, extractor):
    write_image(store.root / "alice" / "1.jpg", 100)
    write_image(store.root / "alice" / "2.jpg", 101)
    write_image(store.root / "bob" / "1.jpg", 202)
    registry = _registry(store, extractor)
    entries = asyncio.run(registry.get_or_build())

    decoded = json.loads(json.dumps(registry.to_wire_format()))

    assert [item["label"] for item in decoded] == [e.label for e in entries]
    for item, entry in zip(decoded, entries):
        assert len(item["descriptors"]) == len(entry.descriptors)
        for wire_descriptor, descriptor in zip(item["descriptors"], entry.descriptors):
            assert np.array_equal(np.asarray(wire_descriptor, dtype=np.float32), descriptor)


def test_wire_format_before_any_build_is_empty(store, extractor):
    assert _registry(store, extractor).to_wire_format() == []


def test_extractor_oserror_aborts_build_instead_of_skipping_images(store, extractor, monkeypatch):
    write_image(store.root / "alice" / "1.jpg", 100)
    write_image(store.root / "alice" / "2.jpg", 120)
    registry = _registry(store, extractor)

    def truncated_weights(image):
        raise OSError("Unable to open file (truncated file: facenet_weights.h5)")

    monkeypatch.setattr(extractor, "detect", truncated_weights)
    with pytest.raises(OSError):
        asyncio.run(registry.get_or_build())

    status = registry.status()
    assert status["built"] is False
    assert status["build_count"] == 0
    assert "truncated file" in status["last_error"]


def test_invalidate_during_build_is_not_lost(store):
    write_image(store.root / "alice" / "1.jpg", 100)
    extractor = FakeExtractor(delay=0.2)
    registry = _registry(store, extractor)

    async def scenario():
        first = asyncio.create_task(registry.get_or_build())
        await asyncio.sleep(0.05)
        assert registry.status()["building"] is True
        write_image(store.root / "bob" / "1.jpg", 150)
        registry.invalidate()
        built = await first
        return built, await registry.get_or_build()

    built, cached = asyncio.run(scenario())

    assert [e.label for e in built] == ["alice", "bob"]
    assert [e.label for e in cached] == ["alice", "bob"]
    assert registry.build_count == 1
    # alice from the first scan, then alice and bob from the second
    assert extractor.calls == 3


def test_status_counts_builds_that_found_no_faces(store, extractor):
    write_image(store.root / "ghost" / "1.jpg", 0)
    registry = _registry(store, extractor)

    asyncio.run(registry.get_or_build())

    status = registry.status()
    assert status["built"] is False
    assert status["build_count"] == 1
    assert status["last_error"] is None
