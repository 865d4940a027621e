import json
import logging
import os
import tempfile
import threading
from dataclasses import replace

logger = logging.getLogger("ContentVault")

from .paths import get_db_path
from .schema import ContentRecord, SlugConflictError, StorageError
from .utils import json_dumps, new_content_id, now_iso

DELETED_MARKER = "$$deleted"

# Loading gives up instead of silently dropping data past this share of bad lines.
CORRUPT_ALERT_THRESHOLD = 0.1


class ContentVaultStore:
    """Content records kept in memory and persisted as line-delimited JSON.

    Inserts and updates append the whole document, deletes append a tombstone.
    Replaying the file in order rebuilds the collection; ``open`` and ``close``
    compact it back to one line per live record.
    """

    def __init__(self, db_path=None):
        self.db_path = db_path or get_db_path()
        self._lock = threading.Lock()
        self._docs = {}
        self._is_open = False

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @property
    def is_open(self):
        return self._is_open

    def open(self):
        with self._lock:
            if self._is_open:
                return
            try:
                os.makedirs(os.path.dirname(self.db_path) or ".", exist_ok=True)
                if not os.path.exists(self.db_path):
                    open(self.db_path, "a", encoding="utf-8").close()
            except OSError as exc:
                raise StorageError(f"cannot create datastore {self.db_path}: {exc}") from exc
            self._docs = self._load()
            self._compact()
            self._is_open = True
        logger.info("Loaded %d content record(s) from %s", len(self._docs), self.db_path)

    def close(self):
        with self._lock:
            if not self._is_open:
                return
            try:
                self._compact()
            finally:
                self._is_open = False
                self._docs = {}
        logger.info("Closed datastore %s", self.db_path)

    def _require_open(self):
        if not self._is_open:
            raise StorageError("datastore is not open")

    def _load(self):
        docs = {}
        total = 0
        corrupt = 0
        try:
            with open(self.db_path, "r", encoding="utf-8") as fh:
                lines = fh.readlines()
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageError(f"cannot read datastore {self.db_path}: {exc}") from exc

        for lineno, line in enumerate(lines, start=1):
            line = line.strip()
            if not line:
                continue
            total += 1
            try:
                doc = json.loads(line)
            except ValueError:
                doc = None
            # NeDB files written by the earlier server key documents by "_id".
            raw_id = (doc.get("id") or doc.get("_id")) if isinstance(doc, dict) else None
            if not raw_id:
                corrupt += 1
                logger.warning("Skipping corrupt line %d in %s", lineno, self.db_path)
                continue
            content_id = str(raw_id)
            if doc.get(DELETED_MARKER):
                docs.pop(content_id, None)
                continue
            try:
                docs[content_id] = ContentRecord.from_dict(doc)
            except (KeyError, TypeError, ValueError):
                corrupt += 1
                logger.warning("Skipping malformed record on line %d in %s", lineno, self.db_path)

        if total and corrupt / total > CORRUPT_ALERT_THRESHOLD:
            raise StorageError(
                f"{corrupt} of {total} lines in {self.db_path} are corrupt; refusing to load"
            )
        return docs

    def _compact(self):
        directory = os.path.dirname(self.db_path) or "."
        try:
            fd, tmp_path = tempfile.mkstemp(prefix=".content-", suffix=".tmp", dir=directory)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    for record in self._docs.values():
                        fh.write(json_dumps(record.to_dict()) + "\n")
                    fh.flush()
                    os.fsync(fh.fileno())
                os.replace(tmp_path, self.db_path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as exc:
            raise StorageError(f"cannot compact datastore {self.db_path}: {exc}") from exc

    def _append(self, doc):
        try:
            with open(self.db_path, "a", encoding="utf-8") as fh:
                fh.write(json_dumps(doc) + "\n")
                fh.flush()
                os.fsync(fh.fileno())
        except OSError as exc:
            raise StorageError(f"cannot write datastore {self.db_path}: {exc}") from exc

    def _slug_owner(self, slug):
        for record in self._docs.values():
            if record.slug == slug:
                return record.id
        return None

    def list_contents(self):
        with self._lock:
            self._require_open()
            return [replace(r) for r in self._docs.values()]

    def count_contents(self):
        with self._lock:
            self._require_open()
            return len(self._docs)

    def find_by_slug(self, slug):
        with self._lock:
            self._require_open()
            # First match in insertion order if the file carries duplicates.
            for record in self._docs.values():
                if record.slug == slug:
                    return replace(record)
        raise KeyError("content not found")

    def get_content(self, content_id):
        with self._lock:
            self._require_open()
            record = self._docs.get(content_id)
            if record is None:
                raise KeyError("content not found")
            return replace(record)

    def insert_content(self, fields):
        with self._lock:
            self._require_open()
            if self._slug_owner(fields.slug) is not None:
                raise SlugConflictError(fields.slug)
            now = now_iso()
            record = ContentRecord.from_fields(new_content_id(), fields, now, now)
            self._append(record.to_dict())
            self._docs[record.id] = record
            return replace(record)

    def insert_many(self, fields_list):
        return [self.insert_content(fields) for fields in fields_list]

    def update_content(self, content_id, fields):
        with self._lock:
            self._require_open()
            existing = self._docs.get(content_id)
            if existing is None:
                raise KeyError("content not found")
            # Keeping its own slug is always allowed, even for a record sharing it with an older one.
            if fields.slug != existing.slug and self._slug_owner(fields.slug) is not None:
                raise SlugConflictError(fields.slug)
            last_modified = max(now_iso(), existing.created_at)
            record = ContentRecord.from_fields(content_id, fields, existing.created_at, last_modified)
            self._append(record.to_dict())
            self._docs[content_id] = record
            return replace(record)

    def delete_content(self, content_id):
        with self._lock:
            self._require_open()
            existing = self._docs.get(content_id)
            if existing is None:
                raise KeyError("content not found")
            self._append({"id": content_id, DELETED_MARKER: True})
            del self._docs[content_id]
            return replace(existing)
