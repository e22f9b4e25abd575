"""
Indexed Collection

Generic in-memory repository holding every record of one entity type.

Features:
- Atomic load from a CSV path or Polars DataFrame
- O(1) id lookup through an id index built at load time
- Foreign-key indexes for the fields a repository declares
- Linear scans for any other record field
- Single-writer create/update/delete under a reentrant lock; readers
  always receive a snapshot list
"""

import dataclasses
import threading
from datetime import datetime
from operator import attrgetter
from typing import Any, Callable, Dict, Generic, Iterable, Iterator, List, Mapping, Optional, Tuple, Type, TypeVar

import structlog

from sales_engine.exceptions import MalformedRecordError, SalesEngineError
from sales_engine.ingestion import CSVLoader, DataSource, RowDecoder, describe_source
from sales_engine.models import Record

logger = structlog.get_logger(__name__)

T = TypeVar("T", bound=Record)


class Repository(Generic[T]):
    """
    Indexed collection of one record type.

    Args:
        record_type: Record class; supplies the row decoder and column list
        id_of: Extracts the unique id of a record
        indexed_fields: Fields that get a value -> records index
        loader: Raw row reader (a default CSVLoader when omitted)

    Example:
        merchants = Repository(Merchant)
        merchants.load("data/merchants.csv")
        merchants.find_by_id(12334105)
    """

    def __init__(
        self,
        record_type: Type[T],
        id_of: Callable[[T], int] = attrgetter("id"),
        indexed_fields: Iterable[str] = (),
        loader: Optional[CSVLoader] = None,
    ):
        self.record_type = record_type
        self.id_of = id_of
        self.indexed_fields: Tuple[str, ...] = tuple(indexed_fields)
        self._loader = loader or CSVLoader()
        self._field_names = set(record_type.field_names())

        unknown = set(self.indexed_fields) - self._field_names
        if unknown:
            raise ValueError(f"{record_type.__name__} has no field(s): {sorted(unknown)}")

        self._lock = threading.RLock()
        self._records: List[T] = []
        self._by_id: Dict[Any, T] = {}
        self._indexes: Dict[str, Dict[Any, List[T]]] = {}
        self._next_id = 1
        self._reindex()

    @property
    def entity(self) -> str:
        return self.record_type.ENTITY

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _decode(self, rows: List[Mapping[str, Any]], source_name: str) -> List[T]:
        """Decode raw rows into records, rejecting duplicate ids"""
        records: List[T] = []
        seen = set()
        for row_number, row in enumerate(rows, start=1):
            decoder = RowDecoder(self.entity, row, row_number, source=source_name)
            record = self.record_type.from_row(decoder)
            record_id = self.id_of(record)
            if record_id in seen:
                raise MalformedRecordError(
                    self.entity,
                    f"duplicate id {record_id}",
                    row=row_number,
                    column="id",
                    value=record_id,
                    source=source_name,
                )
            seen.add(record_id)
            records.append(record)
        return records

    def load(self, source: DataSource) -> None:
        """
        Replace the collection with the records of a data source.

        Raises SchemaError or MalformedRecordError; on failure the previous
        contents are left untouched.
        """
        source_name = describe_source(source)
        try:
            rows = self._loader.read(source, self.entity, self.record_type.COLUMNS)
            records = self._decode(rows, source_name)
        except SalesEngineError as e:
            logger.error(
                "Collection load failed",
                entity=self.entity,
                source=source_name,
                error=str(e),
            )
            raise

        with self._lock:
            self._records = records
            self._next_id = max((self.id_of(r) for r in records), default=0) + 1
            self._reindex()

        logger.info(
            "Collection loaded",
            entity=self.entity,
            source=source_name,
            rows=len(records),
        )

    def _reindex(self) -> None:
        """Rebuild the id index and the foreign-key indexes"""
        self._by_id = {self.id_of(record): record for record in self._records}
        indexes: Dict[str, Dict[Any, List[T]]] = {name: {} for name in self.indexed_fields}
        for record in self._records:
            for name, index in indexes.items():
                index.setdefault(getattr(record, name), []).append(record)
        self._indexes = indexes

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def all(self) -> List[T]:
        """Every record in insertion order (a snapshot)"""
        with self._lock:
            return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[T]:
        return iter(self.all())

    def find_by_id(self, record_id: Any) -> Optional[T]:
        """Record with this id, or None"""
        with self._lock:
            try:
                return self._by_id.get(record_id)
            except TypeError:
                # unhashable lookups cannot match anything
                return None

    def find_all_by(self, field: str, value: Any) -> List[T]:
        """Every record whose field equals value; empty list when none do"""
        if field not in self._field_names:
            raise ValueError(f"{self.record_type.__name__} has no field {field!r}")

        with self._lock:
            index = self._indexes.get(field)
            if index is not None:
                try:
                    return list(index.get(value, ()))
                except TypeError:
                    return []
            return [record for record in self._records if getattr(record, field) == value]

    def find_all_where(self, predicate: Callable[[T], bool]) -> List[T]:
        """Every record matching predicate, in insertion order"""
        return [record for record in self.all() if predicate(record)]

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def create(self, attributes: Mapping[str, Any]) -> T:
        """
        Add a record under the next unused id.

        created_at/updated_at default to now. Ids freed by delete are never
        handed out again.
        """
        with self._lock:
            now = datetime.now()
            values = dict(attributes)
            values["id"] = self._next_id
            values.setdefault("created_at", now)
            values.setdefault("updated_at", now)

            unknown = set(values) - self._field_names
            if unknown:
                raise ValueError(f"{self.record_type.__name__} has no field(s): {sorted(unknown)}")

            record = self.record_type(**values)
            self._records.append(record)
            self._next_id += 1
            self._reindex()

        logger.debug("Record created", entity=self.entity, id=values["id"])
        return record

    def update(self, record_id: Any, attributes: Mapping[str, Any]) -> Optional[T]:
        """
        Merge the mutable fields present in attributes and refresh updated_at.

        Returns the new record, or None when the id is unknown.
        """
        with self._lock:
            current = self.find_by_id(record_id)
            if current is None:
                return None

            changes = {
                name: value
                for name, value in attributes.items()
                if name in self.record_type.MUTABLE_FIELDS
            }
            changes["updated_at"] = datetime.now()
            updated = dataclasses.replace(current, **changes)

            position = next(i for i, r in enumerate(self._records) if r is current)
            self._records[position] = updated
            self._reindex()

        logger.debug("Record updated", entity=self.entity, id=record_id, fields=sorted(changes))
        return updated

    def delete(self, record_id: Any) -> Optional[T]:
        """Remove a record; returns it, or None when the id is unknown"""
        with self._lock:
            current = self.find_by_id(record_id)
            if current is None:
                return None
            self._records = [r for r in self._records if r is not current]
            self._reindex()

        logger.debug("Record deleted", entity=self.entity, id=record_id)
        return current

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {len(self)} rows>"
