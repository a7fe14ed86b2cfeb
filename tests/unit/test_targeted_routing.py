"""
Unit tests checking that queues use field-granular store operations when the
store advertises them.
"""

from __future__ import annotations

import unittest

from guild_queue import Queue, QueueOptions, QueueSaver
from queue_fixtures import MemoryTargetedStore, RecordingWatcher, make_track, titles

SESSION = "guild-t"


class TargetedRoutingTest(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.store = MemoryTargetedStore()
        self.queue = Queue(SESSION, saver=QueueSaver(QueueOptions(max_previous_tracks=2, queue_store=self.store)))

    def reset_calls(self) -> None:
        self.store.calls.clear()

    async def test_reads_use_single_field_operations(self) -> None:
        await self.queue.set_tracks([make_track("a"), make_track("b"), make_track("c")])
        self.reset_calls()

        self.assertEqual(3, await self.queue.get_track_count())
        self.assertEqual("enc-b", (await self.queue.get_track(1))["encoded"])
        self.assertEqual(["Title b", "Title c"], titles(await self.queue.get_tracks_slice(1)))
        self.assertEqual(3, len(await self.queue.get_tracks()))
        self.assertEqual(0, await self.queue.get_previous_count())
        self.assertEqual(
            ["get_tracks_count", "get_track_at", "get_tracks_range", "get_all_tracks", "get_previous_count"],
            self.store.calls,
        )

    async def test_primitives_never_rewrite_full_document(self) -> None:
        self.assertEqual(1, await self.queue.push_track(make_track("a")))
        self.assertEqual(2, await self.queue.unshift_track(make_track("b")))
        self.assertEqual("enc-b", (await self.queue.shift_track())["encoded"])
        self.assertTrue(await self.queue.replace_track(0, make_track("z")))
        self.assertFalse(await self.queue.replace_track(5, make_track("y")))
        await self.queue.clear_tracks()
        self.assertNotIn("set", self.store.calls)
        self.assertNotIn("save_full", self.store.calls)
        self.assertEqual(
            [
                "push_track",
                "unshift_track",
                "shift_track",
                "get_tracks_count",
                "set_track_at",
                "get_tracks_count",
                "clear_tracks",
            ],
            self.store.calls,
        )

    async def test_previous_history_uses_capped_push(self) -> None:
        for name in ("t1", "t2", "t3"):
            await self.queue.add_to_previous(make_track(name))
        self.assertEqual(["add_to_previous"] * 3, self.store.calls)
        self.assertEqual(["Title t3", "Title t2"], titles(await self.queue.get_previous()))
        self.assertEqual("enc-t3", (await self.queue.shift_previous())["encoded"])
        self.assertEqual("enc-t2", (await self.queue.get_previous_track(0))["encoded"])

    async def test_watched_mutations_use_full_document_cycle(self) -> None:
        watcher = RecordingWatcher()
        queue = Queue(
            SESSION,
            saver=QueueSaver(QueueOptions(queue_store=self.store, queue_changes_watcher=watcher)),
        )
        await queue.add([make_track("a"), make_track("b")])
        self.assertEqual(["set"], self.store.calls)
        self.assertEqual(["tracks_add"], watcher.names())
        self.assertEqual(["Title a", "Title b"], titles(await queue.get_tracks()))

    async def test_destroy_uses_delete_all(self) -> None:
        await self.queue.push_track(make_track("a"))
        await self.queue.utils.destroy()
        self.assertEqual("delete_all", self.store.calls[-1])
        self.assertNotIn(SESSION, self.store.docs)


if __name__ == "__main__":
    unittest.main()
