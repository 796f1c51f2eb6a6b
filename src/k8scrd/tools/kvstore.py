from dataclasses import dataclass
import json
from pathlib import Path
from typing import Any, Generic, Iterator, TypeVar

from databind.json import dump as ser, load as deser
from filelock import FileLock
from loguru import logger

T = TypeVar("T")
Value = dict[str, Any] | list[Any] | str | int | float | bool | None


class JsonFileKvStore:
    """
    Stores JSON values by key in a single JSON file. The file is read lazily and written back when the context
    manager exits. A file lock is held for as long as the context manager is active, so concurrent invocations
    can not overwrite each other's changes.
    """

    def __init__(self, file: Path, lockfile: Path | None = None) -> None:
        self._file = file
        self._lock = FileLock(str(lockfile if lockfile is not None else file.with_name(file.name + ".lock")))
        self._data: dict[str, Value] | None = None
        self._dirty = False

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._file})"

    def __enter__(self) -> "JsonFileKvStore":
        self._file.parent.mkdir(parents=True, exist_ok=True)
        self._lock.acquire(timeout=5)
        return self

    def __exit__(self, exc_type: Any, exc_value: Any, traceback: Any) -> None:
        try:
            if exc_type is None and self._dirty:
                self._save()
        finally:
            self._data = None
            self._dirty = False
            self._lock.release()

    def _load(self) -> dict[str, Value]:
        if not self._lock.is_locked:
            raise RuntimeError("The store must be entered as a context manager before it can be accessed")
        if self._data is None:
            if self._file.exists():
                logger.trace("Loading state from '{}'", self._file)
                self._data = json.loads(self._file.read_text())
            else:
                self._data = {}
        return self._data

    def _save(self) -> None:
        logger.trace("Saving state to '{}'", self._file)
        self._file.write_text(json.dumps(self._data, indent=2, sort_keys=True))

    def __contains__(self, key: str) -> bool:
        return key in self._load()

    def get(self, key: str) -> Value:
        return self._load()[key]

    def set(self, key: str, value: Value) -> None:
        self._load()[key] = value
        self._dirty = True

    def delete(self, key: str) -> None:
        del self._load()[key]
        self._dirty = True

    def keys(self) -> Iterator[str]:
        return iter(sorted(self._load()))


@dataclass
class SerializingStore(Generic[T]):
    """
    Stores values of type *value_type* in a #JsonFileKvStore, converting them with [databind.json].
    """

    value_type: type[T]
    store: JsonFileKvStore

    def __enter__(self) -> "SerializingStore[T]":
        self.store.__enter__()
        return self

    def __exit__(self, exc_type: Any, exc_value: Any, traceback: Any) -> None:
        self.store.__exit__(exc_type, exc_value, traceback)

    def __contains__(self, key: str) -> bool:
        return key in self.store

    def get(self, key: str) -> T:
        return deser(self.store.get(key), self.value_type, filename=str(self.store))

    def get_or_none(self, key: str) -> T | None:
        return self.get(key) if key in self.store else None

    def set(self, key: str, value: T) -> None:
        self.store.set(key, ser(value, self.value_type, filename=str(self.store)))

    def delete(self, key: str) -> None:
        self.store.delete(key)

    def keys(self) -> Iterator[str]:
        return self.store.keys()
