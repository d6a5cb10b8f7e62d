# finance_api/db/store.py
"""Whole-document JSON store.

The entire dataset lives in one JSON file. Every mutating request reads the
file, mutates the in-memory document and rewrites the file. Writes go through
a temp file + os.replace so a crash mid-write leaves the previous file intact.
"""
import copy
import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from finance_api.db.models import COLLECTIONS, default_categories, empty_document

logger = logging.getLogger(__name__)


class JsonStore:
    def __init__(self, path: str):
        self.path = os.path.abspath(path)
        self.data: Dict[str, Any] = {}
        self._lock = threading.RLock()

    def load(self) -> "JsonStore":
        """Create the data directory if needed, read the file and seed default categories."""
        os.makedirs(os.path.dirname(self.path), exist_ok=True)
        with self._lock:
            if os.path.exists(self.path):
                self.read()
            else:
                self.data = empty_document()
                self.write()
                logger.info("Created new data file at %s", self.path)
                return self

            if not self.data.get("categories"):
                self.data["categories"] = default_categories()
                self.write()
                logger.info("Seeded default categories")
        logger.info("Database initialized (%s)", self.path)
        return self

    def read(self) -> Dict[str, Any]:
        with self._lock:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
            # shape changes are handled by filling in missing collections
            for name in COLLECTIONS:
                raw.setdefault(name, [])
            self.data = raw
            return self.data

    def write(self) -> None:
        with self._lock:
            directory = os.path.dirname(self.path)
            fd, tmp_path = tempfile.mkstemp(prefix=".db-", suffix=".json", dir=directory)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(self.data, f, indent=2, ensure_ascii=False)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_path, self.path)
            except Exception:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise

    def replace_data(self, data: Dict[str, Any]) -> None:
        with self._lock:
            self.data = data

    def export(self) -> Dict[str, Any]:
        """A deep copy of the current document, exactly as stored."""
        with self._lock:
            return copy.deepcopy(self.read())

    @contextmanager
    def session(self) -> Iterator[Dict[str, Any]]:
        """
        Read-mutate-write unit of work:
            with store.session() as db:
                db["goals"].append(goal)
        On success the whole file is rewritten; on any exception the in-memory
        document is restored to its pre-session snapshot and nothing is written.
        """
        with self._lock:
            self.read()
            snapshot = copy.deepcopy(self.data)
            try:
                yield self.data
            except Exception:
                self.data = snapshot
                raise
            self.write()


def find_by_id(records: List[Dict[str, Any]], record_id: str) -> Optional[Dict[str, Any]]:
    return next((r for r in records if r.get("id") == record_id), None)
