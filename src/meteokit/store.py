# meteokit/store.py
"""Keyed object store used by the store-aware response mappers.

The mapping layer only needs create-or-fetch by identifier plus save and
rollback, which is what the `ObjectStore` protocol describes. The bundled
`MemoryObjectStore` keeps a working set on top of the last committed
snapshot and can persist that snapshot to a JSON file.
"""

import json
import threading
from pathlib import Path
from typing import Any, ClassVar, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel, ConfigDict, ValidationError

from .exceptions import DatabaseError
from .log_config import logger


class StoredModel(BaseModel):
    """Base class for records kept in an ObjectStore.

    Subclasses declare the attribute that identifies a record through
    `identifier_key_path`. Records are mutable (mappers update them in place)
    and hash by identity so that they can be collected into sets.
    """

    model_config = ConfigDict(validate_assignment=True)

    identifier_key_path: ClassVar[str] = "identifier"

    @property
    def identifier(self) -> Any:
        return getattr(self, self.identifier_key_path)

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.identifier))


R = TypeVar("R", bound=StoredModel)


@runtime_checkable
class ObjectStore(Protocol):
    """Interface the store-aware mappers rely on."""

    def upsert(self, entity: type[R], identifier: Any) -> R:
        """Returns the record with this identifier, creating it if needed."""
        ...

    def object(self, entity: type[R], identifier: Any) -> R | None: ...

    def all_objects(
        self, entity: type[R], sort_on: str | None = None, ascending: bool = True
    ) -> list[R]: ...

    def remove_all(self, entity: type[StoredModel]) -> None: ...

    def save(self) -> None: ...

    def rollback(self) -> None: ...


class MemoryObjectStore:
    """In-memory ObjectStore with save/rollback semantics.

    Changes made through `upsert` (and in-place updates of the returned
    records) stay in the working set until `save()` commits them. `rollback()`
    discards everything since the last commit. When a `path` is given, every
    commit is also written there as JSON and read back on construction.

    Attributes:
        path: Optional JSON file holding the committed snapshot.
        _committed: Committed payloads per entity name.
        _records: Working records per entity name, keyed by identifier.
        _lock: Serializes writers.
    """

    def __init__(self, path: Path | str | None = None):
        self.path = Path(path) if path is not None else None
        self._committed: dict[str, list[dict[str, Any]]] = {}
        self._records: dict[str, dict[Any, StoredModel]] = {}
        self._lock = threading.RLock()
        if self.path is not None and self.path.exists():
            payload = json.loads(self.path.read_text(encoding="utf-8"))
            if not isinstance(payload, dict):
                raise DatabaseError(f"Stored snapshot {self.path} must be a JSON object.")
            self._committed = payload
            logger.debug(f"Object store loaded from {self.path}")

    def _bucket(self, entity: type[R]) -> dict[Any, R]:
        name = entity.__name__
        bucket = self._records.get(name)
        if bucket is None:
            bucket = {}
            for payload in self._committed.get(name, []):
                record = entity.model_validate(payload)
                bucket[record.identifier] = record
            self._records[name] = bucket
        return bucket  # type: ignore[return-value]

    def upsert(self, entity: type[R], identifier: Any) -> R:
        with self._lock:
            bucket = self._bucket(entity)
            record = bucket.get(identifier)
            if record is not None:
                return record
            try:
                record = entity.model_validate({entity.identifier_key_path: identifier})
            except ValidationError as e:
                raise DatabaseError(
                    f"Cannot create {entity.__name__} identified by {identifier!r}: {e}"
                ) from e
            bucket[record.identifier] = record
            logger.trace(f"Inserted {entity.__name__} {identifier!r}")
            return record

    def object(self, entity: type[R], identifier: Any) -> R | None:
        with self._lock:
            return self._bucket(entity).get(identifier)

    def all_objects(
        self, entity: type[R], sort_on: str | None = None, ascending: bool = True
    ) -> list[R]:
        with self._lock:
            records = list(self._bucket(entity).values())
        if sort_on is not None:
            records.sort(
                key=lambda r: (getattr(r, sort_on) is None, getattr(r, sort_on)),
                reverse=not ascending,
            )
        return records

    def remove_all(self, entity: type[StoredModel]) -> None:
        with self._lock:
            self._bucket(entity).clear()

    def save(self) -> None:
        with self._lock:
            for name, bucket in self._records.items():
                self._committed[name] = [
                    record.model_dump(mode="json") for record in bucket.values()
                ]
            if self.path is not None:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                self.path.write_text(
                    json.dumps(self._committed, indent=2), encoding="utf-8"
                )
                logger.debug(f"Object store saved to {self.path}")

    def rollback(self) -> None:
        with self._lock:
            self._records.clear()
            logger.debug("Object store rolled back to last commit")
