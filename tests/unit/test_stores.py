"""
Unit tests for the saver, the bundled stores and the backend factory.
"""

from __future__ import annotations

import asyncio
import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from guild_queue import (
    BackendConfigurationError,
    DefaultQueueStore,
    JsonFileQueueStore,
    Queue,
    QueueOptions,
    QueueSaver,
    StoreBackend,
    available_backends,
    create_queue_store,
    is_targeted_store,
)
from queue_fixtures import AsyncJsonTextStore, MemoryTargetedStore, make_track, titles


class QueueSaverTest(unittest.IsolatedAsyncioTestCase):
    async def test_default_store_is_created_per_saver(self) -> None:
        first, second = QueueSaver(), QueueSaver()
        self.assertIsInstance(first.store, DefaultQueueStore)
        self.assertIsNot(first.store, second.store)
        self.assertEqual(25, first.max_previous_tracks)
        self.assertFalse(first.supports_targeted_ops)

    async def test_stringify_and_parse_hooks_are_applied(self) -> None:
        store = AsyncJsonTextStore()
        saver = QueueSaver(QueueOptions(queue_store=store))
        document = {"current": None, "previous": [], "tracks": [make_track("a")]}
        self.assertTrue(await saver.set("s", document))
        self.assertEqual(document, json.loads(store.raw["s"]))
        self.assertEqual(document, await saver.get("s"))
        self.assertEqual(document, await saver.sync("s"))
        self.assertTrue(await saver.delete("s"))
        self.assertIsNone(await saver.get("s"))

    async def test_run_targeted_requires_targeted_store(self) -> None:
        with self.assertRaises(TypeError):
            await QueueSaver().run_targeted("get_all_tracks", "s")

    async def test_run_targeted_dispatches_by_name(self) -> None:
        store = MemoryTargetedStore()
        saver = QueueSaver(QueueOptions(queue_store=store))
        self.assertTrue(saver.supports_targeted_ops)
        self.assertEqual(1, await saver.run_targeted("push_track", "s", make_track("a")))
        self.assertEqual(["push_track"], store.calls)

    def test_targeted_marker_must_be_exactly_true(self) -> None:
        marked = MemoryTargetedStore()
        self.assertTrue(is_targeted_store(marked))
        marked.supports_targeted_ops = "yes"
        self.assertFalse(is_targeted_store(marked))
        self.assertFalse(is_targeted_store(DefaultQueueStore()))


class DefaultQueueStoreTest(unittest.TestCase):
    def test_basic_operations(self) -> None:
        store = DefaultQueueStore()
        self.assertIsNone(store.get("s"))
        self.assertTrue(store.set("s", {"tracks": []}))
        self.assertEqual({"tracks": []}, store.get("s"))
        self.assertEqual(1, len(store))
        self.assertTrue(store.delete("s"))
        self.assertFalse(store.delete("s"))
        self.assertNotIn("s", store)

    def test_hooks_are_identity(self) -> None:
        store = DefaultQueueStore()
        value = {"current": None}
        self.assertIs(value, store.stringify(value))
        self.assertIs(value, store.parse(value))


class JsonFileQueueStoreTest(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.directory = Path(self._tmp.name) / "queues"
        self.store = JsonFileQueueStore(str(self.directory))

    async def asyncTearDown(self) -> None:
        self._tmp.cleanup()

    async def test_missing_document_reads_as_none(self) -> None:
        self.assertIsNone(await self.store.get("nobody"))
        self.assertIsNone(self.store.parse(None))
        self.assertFalse(await self.store.delete("nobody"))

    async def test_write_is_atomic_and_leaves_no_temp_file(self) -> None:
        text = self.store.stringify({"current": None, "previous": [], "tracks": []})
        self.assertTrue(await self.store.set("guild-1", text))
        self.assertEqual(["guild-1.json"], sorted(p.name for p in self.directory.iterdir()))
        self.assertEqual(text, await self.store.get("guild-1"))

    async def test_overlapping_writes_of_one_session_all_succeed(self) -> None:
        texts = [json.dumps({"tracks": [], "n": n}) for n in range(16)]
        results = await asyncio.gather(*(self.store.set("guild-1", text) for text in texts))
        self.assertTrue(all(results))
        self.assertIn(await self.store.get("guild-1"), texts)
        self.assertEqual(["guild-1.json"], sorted(p.name for p in self.directory.iterdir()))

    async def test_failed_rename_removes_temporary_file(self) -> None:
        with mock.patch("guild_queue.persistence.os.replace", side_effect=OSError("disk full")):
            with self.assertRaises(OSError):
                await self.store.set("guild-1", "{}")
        self.assertEqual([], list(self.directory.iterdir()))
        self.assertIsNone(await self.store.get("guild-1"))

    async def test_session_ids_cannot_escape_directory(self) -> None:
        path = self.store.path_for("../etc/passwd")
        self.assertEqual(self.store.directory, path.parent)

    async def test_parse_rejects_non_object_documents(self) -> None:
        with self.assertRaises(ValueError):
            self.store.parse("[1, 2]")

    async def test_fsync_mode_writes(self) -> None:
        store = JsonFileQueueStore(str(self.directory), fsync=True)
        await store.set("s", "{}")
        self.assertEqual("{}", await store.get("s"))

    async def test_queue_survives_new_store_instance(self) -> None:
        queue = Queue("guild-9", saver=QueueSaver(QueueOptions(queue_store=self.store)))
        await queue.add([make_track("a"), make_track("b")])
        await queue.add_to_previous(make_track("p"))

        reopened = JsonFileQueueStore(str(self.directory))
        restored = Queue("guild-9", saver=QueueSaver(QueueOptions(queue_store=reopened)))
        self.assertEqual(["Title a", "Title b"], titles(await restored.get_tracks()))
        self.assertEqual(["Title p"], titles(await restored.get_previous()))
        await restored.utils.destroy()
        self.assertFalse(self.store.path_for("guild-9").exists())


class BackendFactoryTest(unittest.TestCase):
    def test_memory_backend(self) -> None:
        self.assertIsInstance(create_queue_store(), DefaultQueueStore)
        self.assertIsInstance(create_queue_store(" Memory "), DefaultQueueStore)
        self.assertIsInstance(create_queue_store(StoreBackend.MEMORY), DefaultQueueStore)

    def test_json_backend(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            store = create_queue_store("json", directory=tmp, fsync=True)
            self.assertIsInstance(store, JsonFileQueueStore)
            self.assertEqual(Path(tmp).resolve(), store.directory)

    def test_json_backend_requires_directory(self) -> None:
        with self.assertRaises(BackendConfigurationError):
            create_queue_store("json")

    def test_unknown_backend_and_options(self) -> None:
        with self.assertRaises(BackendConfigurationError):
            create_queue_store("sqlite")
        with self.assertRaises(BackendConfigurationError):
            create_queue_store("memory", namespace="x")

    def test_available_backends_always_lists_builtins(self) -> None:
        backends = available_backends()
        self.assertEqual(("memory", "json"), backends[:2])

    def test_redis_backend_builds_lazily(self) -> None:
        if "redis" not in available_backends():
            self.skipTest("redis plugin not importable")
        store = create_queue_store("redis", redis_url="redis://127.0.0.1:6399/0", namespace="unit")
        self.assertTrue(is_targeted_store(store))
        self.assertEqual("unit", store.config.namespace)
        with self.assertRaises(BackendConfigurationError):
            create_queue_store("redis", bogus=True)


class QueueOptionsTest(unittest.TestCase):
    def test_defaults(self) -> None:
        options = QueueOptions()
        self.assertEqual(25, options.max_previous_tracks)
        self.assertIsNone(options.queue_store)
        self.assertIsNone(options.queue_changes_watcher)

    def test_invalid_retention_values(self) -> None:
        for value in (-1, 2.5, "10", True):
            with self.subTest(value=value):
                with self.assertRaises(ValueError):
                    QueueOptions(max_previous_tracks=value)


if __name__ == "__main__":
    unittest.main()
