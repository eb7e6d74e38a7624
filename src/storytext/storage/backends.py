"""Record store backends (in-memory and JSON documents on disk).

Keys are tuples whose first element is the partition (story id) and whose
optional second element is the sort key (task id).
"""

import copy
import json
import os
import threading
from pathlib import Path
from typing import Protocol
from urllib.parse import quote, unquote

from storytext.models.errors import ConditionalWriteError, StoreReadError, StoreWriteError


MAX_BATCH_ITEMS = 25

Key = tuple[str, ...]


class RecordBackend(Protocol):
    """Narrow document-store capability used by TaskRecordStore."""

    def get(self, table: str, key: Key) -> dict | None:
        ...

    def put(self, table: str, key: Key, item: dict, unique_on: tuple[str, ...] = ()) -> None:
        """Insert *item*; with *unique_on*, fail if the partition already holds
        a record with the same values for those attributes."""
        ...

    def update(
        self, table: str, key: Key, set_fields: dict, remove_fields: tuple[str, ...] = ()
    ) -> dict:
        """Atomically set/remove attributes, creating the record if absent."""
        ...

    def query(self, table: str, partition: str, filters: dict | None = None) -> list[dict]:
        ...

    def batch_put(self, table: str, items: list[tuple[Key, dict]]) -> None:
        ...


def _matches(item: dict, filters: dict | None) -> bool:
    return all(item.get(k) == v for k, v in (filters or {}).items())


def _path_segment(value: str) -> str:
    """Percent-encode *value* into a single directory name.

    quote() leaves dots alone, so "." and ".." (and "") are encoded by hand to
    keep every partition inside its table directory.
    """
    name = quote(value, safe="")
    if not name.strip("."):
        return name.replace(".", "%2E") or "%"
    return name


def _check_batch_size(items: list) -> None:
    if len(items) > MAX_BATCH_ITEMS:
        raise ValueError(f"batch_put accepts at most {MAX_BATCH_ITEMS} items, got {len(items)}")


class InMemoryRecordBackend:
    """Dict-backed record store for tests and local runs."""

    def __init__(self):
        self._tables: dict[str, dict[Key, dict]] = {}
        self._lock = threading.RLock()

    def _table(self, table: str) -> dict[Key, dict]:
        return self._tables.setdefault(table, {})

    def get(self, table: str, key: Key) -> dict | None:
        with self._lock:
            item = self._table(table).get(key)
            return copy.deepcopy(item) if item is not None else None

    def put(self, table: str, key: Key, item: dict, unique_on: tuple[str, ...] = ()) -> None:
        with self._lock:
            if unique_on:
                wanted = {f: item.get(f) for f in unique_on}
                if self.query(table, key[0], wanted):
                    raise ConditionalWriteError(
                        f"A record matching {wanted} already exists in {table}/{key[0]}",
                        details={"table": table, "partition": key[0], "unique_on": wanted},
                    )
            self._table(table)[key] = copy.deepcopy(item)

    def update(
        self, table: str, key: Key, set_fields: dict, remove_fields: tuple[str, ...] = ()
    ) -> dict:
        with self._lock:
            item = self._table(table).setdefault(key, {})
            item.update(copy.deepcopy(set_fields))
            for field in remove_fields:
                item.pop(field, None)
            return copy.deepcopy(item)

    def query(self, table: str, partition: str, filters: dict | None = None) -> list[dict]:
        with self._lock:
            return [
                copy.deepcopy(item)
                for key, item in sorted(self._table(table).items())
                if key[0] == partition and _matches(item, filters)
            ]

    def batch_put(self, table: str, items: list[tuple[Key, dict]]) -> None:
        _check_batch_size(items)
        with self._lock:
            for key, item in items:
                self._table(table)[key] = copy.deepcopy(item)


class JsonFileRecordBackend:
    """One JSON document per record under ``base_dir/<table>/<partition>/``.

    Writes are atomic per document (write-then-rename). Conditional writes
    are serialized within this process only.
    """

    def __init__(self, base_dir: Path):
        self.base_dir = base_dir
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()

    def _partition_dir(self, table: str, partition: str) -> Path:
        return self.base_dir / table / _path_segment(partition)

    def _path(self, table: str, key: Key) -> Path:
        name = quote(key[1], safe="") if len(key) > 1 else "_"
        return self._partition_dir(table, key[0]) / f"{name}.json"

    def _read(self, path: Path) -> dict | None:
        try:
            return json.loads(path.read_text())
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError) as e:
            raise StoreReadError(f"Failed to read record {path}: {e}") from e

    def _write(self, path: Path, item: dict) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp = path.with_suffix(".json.tmp")
            tmp.write_text(json.dumps(item, indent=2))
            os.replace(tmp, path)
        except OSError as e:
            raise StoreWriteError(f"Failed to write record {path}: {e}") from e

    def get(self, table: str, key: Key) -> dict | None:
        return self._read(self._path(table, key))

    def put(self, table: str, key: Key, item: dict, unique_on: tuple[str, ...] = ()) -> None:
        with self._lock:
            if unique_on:
                wanted = {f: item.get(f) for f in unique_on}
                if self.query(table, key[0], wanted):
                    raise ConditionalWriteError(
                        f"A record matching {wanted} already exists in {table}/{key[0]}",
                        details={"table": table, "partition": key[0], "unique_on": wanted},
                    )
            self._write(self._path(table, key), item)

    def update(
        self, table: str, key: Key, set_fields: dict, remove_fields: tuple[str, ...] = ()
    ) -> dict:
        path = self._path(table, key)
        with self._lock:
            item = self._read(path) or {}
            item.update(set_fields)
            for field in remove_fields:
                item.pop(field, None)
            self._write(path, item)
            return item

    def query(self, table: str, partition: str, filters: dict | None = None) -> list[dict]:
        partition_dir = self._partition_dir(table, partition)
        if not partition_dir.is_dir():
            return []
        items = []
        for path in sorted(partition_dir.glob("*.json"), key=lambda p: unquote(p.stem)):
            item = self._read(path)
            if item is not None and _matches(item, filters):
                items.append(item)
        return items

    def batch_put(self, table: str, items: list[tuple[Key, dict]]) -> None:
        _check_batch_size(items)
        with self._lock:
            for key, item in items:
                self._write(self._path(table, key), item)
