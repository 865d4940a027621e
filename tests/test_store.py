import json
import tempfile
import threading
import unittest
from pathlib import Path
from unittest import mock

from contentvault.db import ContentVaultStore
from contentvault.schema import ContentFields, SlugConflictError, StorageError


def _fields(slug="test-page", **extra):
    values = {
        "title": "Test",
        "slug": slug,
        "html_content": "<p>hi</p>",
    }
    values.update(extra)
    return ContentFields(**values)


class ContentVaultStoreTests(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.db_path = str(Path(self.temp_dir.name) / "content.db")
        patcher = mock.patch("contentvault.db.get_db_path", return_value=self.db_path)
        self.addCleanup(patcher.stop)
        patcher.start()
        self.store = ContentVaultStore()
        self.store.open()

    def tearDown(self):
        self.store.close()
        self.temp_dir.cleanup()

    def _reopen(self):
        self.store.close()
        self.store = ContentVaultStore()
        self.store.open()

    def _file_lines(self):
        return [line for line in Path(self.db_path).read_text(encoding="utf-8").splitlines() if line.strip()]

    def test_open_creates_empty_datastore_file(self):
        self.assertTrue(Path(self.db_path).exists())
        self.assertEqual(self.store.list_contents(), [])
        self.assertEqual(self.store.count_contents(), 0)

    def test_insert_assigns_id_and_timestamps(self):
        record = self.store.insert_content(_fields())

        self.assertTrue(record.id)
        self.assertEqual(record.category, "General")
        self.assertTrue(record.created_at)
        self.assertEqual(record.created_at, record.last_modified)
        self.assertEqual(self.store.count_contents(), 1)

    def test_find_by_slug_returns_stored_fields(self):
        created = self.store.insert_content(_fields(category="BSS"))

        found = self.store.find_by_slug("test-page")

        self.assertEqual(found, created)
        self.assertEqual(found.title, "Test")
        self.assertEqual(found.category, "BSS")
        self.assertEqual(found.html_content, "<p>hi</p>")
        self.assertLessEqual(found.created_at, found.last_modified)

    def test_find_by_slug_missing_raises_key_error(self):
        with self.assertRaises(KeyError):
            self.store.find_by_slug("nope")

    def test_update_preserves_id_and_created_at(self):
        with mock.patch(
            "contentvault.db.now_iso",
            side_effect=["2026-01-01T00:00:00.000000+00:00", "2026-01-02T00:00:00.000000+00:00"],
        ):
            created = self.store.insert_content(_fields())
            updated = self.store.update_content(
                created.id, _fields(title="Changed", category="Network", html_content="<p>new</p>")
            )

        self.assertEqual(updated.id, created.id)
        self.assertEqual(updated.created_at, created.created_at)
        self.assertNotEqual(updated.last_modified, created.last_modified)
        self.assertGreater(updated.last_modified, updated.created_at)
        self.assertEqual(self.store.find_by_slug("test-page").title, "Changed")
        self.assertEqual(self.store.get_content(created.id).category, "Network")

    def test_update_unknown_id_raises_key_error(self):
        with self.assertRaises(KeyError):
            self.store.update_content("missing", _fields())
        self.assertEqual(self.store.count_contents(), 0)

    def test_delete_removes_record(self):
        created = self.store.insert_content(_fields())

        removed = self.store.delete_content(created.id)

        self.assertEqual(removed.id, created.id)
        with self.assertRaises(KeyError):
            self.store.find_by_slug("test-page")
        self.assertEqual(self.store.count_contents(), 0)

    def test_delete_unknown_id_keeps_count(self):
        self.store.insert_content(_fields())

        with self.assertRaises(KeyError):
            self.store.delete_content("missing")

        self.assertEqual(self.store.count_contents(), 1)

    def test_delete_returns_a_copy(self):
        created = self.store.insert_content(_fields())
        stored = self.store._docs[created.id]

        removed = self.store.delete_content(created.id)

        self.assertEqual(removed, stored)
        self.assertIsNot(removed, stored)
        self.assertEqual(self.store.count_contents(), 0)

    def test_racing_inserts_with_same_slug_keep_one_record(self):
        workers = 8
        barrier = threading.Barrier(workers)
        created = []
        conflicts = []

        def insert(n):
            barrier.wait()
            try:
                created.append(self.store.insert_content(_fields(title=f"Writer {n}")))
            except SlugConflictError:
                conflicts.append(n)

        threads = [threading.Thread(target=insert, args=(n,)) for n in range(workers)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(len(created), 1)
        self.assertEqual(len(conflicts), workers - 1)
        self.assertEqual(self.store.count_contents(), 1)
        self.assertEqual(self.store.find_by_slug("test-page").id, created[0].id)

    def test_insert_rejects_duplicate_slug(self):
        self.store.insert_content(_fields())

        with self.assertRaises(SlugConflictError):
            self.store.insert_content(_fields(title="Other"))

        self.assertEqual(self.store.count_contents(), 1)

    def test_update_rejects_slug_owned_by_another_record(self):
        self.store.insert_content(_fields(slug="first"))
        second = self.store.insert_content(_fields(slug="second"))

        with self.assertRaises(SlugConflictError):
            self.store.update_content(second.id, _fields(slug="first"))

        self.store.update_content(second.id, _fields(slug="second", title="Same slug is fine"))
        self.assertEqual(self.store.find_by_slug("second").title, "Same slug is fine")

    def test_list_keeps_insertion_order_after_update(self):
        a = self.store.insert_content(_fields(slug="a"))
        self.store.insert_content(_fields(slug="b"))
        self.store.update_content(a.id, _fields(slug="a", title="A2"))

        slugs = [r.slug for r in self.store.list_contents()]

        self.assertEqual(slugs, ["a", "b"])

    def test_returned_records_are_copies(self):
        created = self.store.insert_content(_fields())
        created.title = "mutated by caller"

        self.assertEqual(self.store.find_by_slug("test-page").title, "Test")

    def test_records_survive_reopen(self):
        a = self.store.insert_content(_fields(slug="a"))
        b = self.store.insert_content(_fields(slug="b"))
        self.store.update_content(a.id, _fields(slug="a", title="Updated"))
        self.store.delete_content(b.id)

        self._reopen()

        records = self.store.list_contents()
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0].id, a.id)
        self.assertEqual(records[0].title, "Updated")
        self.assertEqual(len(self._file_lines()), 1)

    def test_mutations_append_lines_until_compaction(self):
        a = self.store.insert_content(_fields(slug="a"))
        self.store.update_content(a.id, _fields(slug="a", title="Updated"))
        self.store.delete_content(a.id)

        lines = [json.loads(line) for line in self._file_lines()]

        self.assertEqual(len(lines), 3)
        self.assertEqual(lines[1]["title"], "Updated")
        self.assertEqual(lines[2], {"id": a.id, "$$deleted": True})

    def test_load_replays_file_in_order(self):
        self.store.close()
        base = {
            "title": "Old",
            "slug": "page",
            "category": "General",
            "htmlContent": "<p>x</p>",
            "createdAt": "2026-01-01T00:00:00.000000+00:00",
            "lastModified": "2026-01-01T00:00:00.000000+00:00",
        }
        lines = [
            dict(base, id="one"),
            dict(base, id="two", slug="gone"),
            dict(base, id="one", title="New", lastModified="2026-01-03T00:00:00.000000+00:00"),
            {"id": "two", "$$deleted": True},
        ]
        Path(self.db_path).write_text("\n".join(json.dumps(doc) for doc in lines) + "\n", encoding="utf-8")

        self.store = ContentVaultStore()
        self.store.open()

        records = self.store.list_contents()
        self.assertEqual([r.id for r in records], ["one"])
        self.assertEqual(records[0].title, "New")
        self.assertEqual(len(self._file_lines()), 1)

    def test_duplicate_slugs_in_file_resolve_to_first_record(self):
        self.store.close()
        doc = {"title": "T", "slug": "dup", "htmlContent": "<p>x</p>", "createdAt": "a", "lastModified": "a"}
        Path(self.db_path).write_text(
            json.dumps(dict(doc, id="first")) + "\n" + json.dumps(dict(doc, id="second")) + "\n",
            encoding="utf-8",
        )

        self.store = ContentVaultStore()
        self.store.open()

        self.assertEqual(self.store.find_by_slug("dup").id, "first")

    def test_later_duplicate_slug_record_can_still_be_updated(self):
        self.store.close()
        doc = {"title": "T", "slug": "dup", "htmlContent": "<p>x</p>", "createdAt": "a", "lastModified": "a"}
        Path(self.db_path).write_text(
            json.dumps(dict(doc, id="first")) + "\n" + json.dumps(dict(doc, id="second")) + "\n",
            encoding="utf-8",
        )
        self.store = ContentVaultStore()
        self.store.open()

        updated = self.store.update_content("second", _fields(slug="dup", title="New"))

        self.assertEqual(updated.title, "New")
        self.assertEqual(self.store.get_content("second").title, "New")
        self.assertEqual(self.store.get_content("first").title, "T")

    def test_loads_nedb_documents(self):
        self.store.close()
        lines = [
            {
                "_id": "Xy12abCD34efGH56",
                "title": "Dashboard Overview",
                "slug": "dashboard-overview",
                "category": "Dashboard",
                "htmlContent": "<p>x</p>",
                "createdAt": {"$$date": 1752825600000},
                "lastModified": {"$$date": 1752912000000},
            },
            {"_id": "gone0000gone0000", "title": "T", "slug": "gone", "htmlContent": "<p/>"},
            {"$$deleted": True, "_id": "gone0000gone0000"},
        ]
        Path(self.db_path).write_text("\n".join(json.dumps(doc) for doc in lines) + "\n", encoding="utf-8")

        self.store = ContentVaultStore()
        self.store.open()

        records = self.store.list_contents()
        self.assertEqual([r.id for r in records], ["Xy12abCD34efGH56"])
        self.assertEqual(records[0].created_at, "2025-07-18T08:00:00.000000+00:00")
        self.assertEqual(records[0].last_modified, "2025-07-19T08:00:00.000000+00:00")
        compacted = json.loads(self._file_lines()[0])
        self.assertEqual(compacted["id"], "Xy12abCD34efGH56")
        self.assertEqual(compacted["createdAt"], "2025-07-18T08:00:00.000000+00:00")

    def test_few_corrupt_lines_are_skipped(self):
        self.store.close()
        good = [
            json.dumps({"id": f"id{i}", "title": "T", "slug": f"s{i}", "htmlContent": "<p/>"}) for i in range(10)
        ]
        Path(self.db_path).write_text("\n".join(good + ["{not json"]) + "\n", encoding="utf-8")

        self.store = ContentVaultStore()
        with self.assertLogs("ContentVault", level="WARNING"):
            self.store.open()

        self.assertEqual(self.store.count_contents(), 10)

    def test_mostly_corrupt_file_refuses_to_load(self):
        self.store.close()
        Path(self.db_path).write_text("garbage\n{broken\n[]\n", encoding="utf-8")

        self.store = ContentVaultStore()
        with self.assertRaises(StorageError):
            self.store.open()
        self.assertFalse(self.store.is_open)
        self.assertIn("garbage", Path(self.db_path).read_text(encoding="utf-8"))

    def test_failed_write_leaves_collection_unchanged(self):
        with mock.patch("contentvault.db.os.fsync", side_effect=OSError("disk full")):
            with self.assertRaises(StorageError):
                self.store.insert_content(_fields())

        self.assertEqual(self.store.count_contents(), 0)

    def test_operations_require_open_store(self):
        self.store.close()

        with self.assertRaises(StorageError):
            self.store.list_contents()
        with self.assertRaises(StorageError):
            self.store.insert_content(_fields())

    def test_context_manager_opens_and_closes(self):
        self.store.close()
        with ContentVaultStore(self.db_path) as store:
            store.insert_content(_fields())
            self.assertTrue(store.is_open)
        self.assertFalse(store.is_open)
        self.assertEqual(len(self._file_lines()), 1)


if __name__ == "__main__":
    unittest.main()
