"""Document collections backed by a single SQLAlchemy table.

The services only rely on the ``Collection`` contract: ``put`` (upsert by
``id``), ``get``, ``scan`` and ``delete``. There are no multi-record
transactions and no secondary indexes: ``scan`` reads the whole collection and
evaluates its conditions in Python, one attribute per condition.

``put`` is a compare-and-swap on the record ``version``. An item read at
version N can only be written back while the stored record is still at N;
otherwise ``StaleRecordError`` is raised and nothing is written.
"""
from dataclasses import dataclass
from typing import Any, Iterable, Protocol

import structlog
from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..domain.errors import Conflict
from .metrics import (
    store_scanned_records_total,
    store_scans_total,
    store_stale_writes_total,
    store_writes_total,
)
from .models import RecordORM

logger = structlog.get_logger()

USERS = "users"
CLASSROOMS = "classrooms"
TASKS = "tasks"
GRADING_COMPONENTS = "grading_components"


class StaleRecordError(Conflict):
    """The record was modified by another request, reload and try again."""


@dataclass(frozen=True)
class Eq:
    attribute: str
    value: Any

    def matches(self, item: dict) -> bool:
        return item.get(self.attribute) == self.value


@dataclass(frozen=True)
class Contains:
    attribute: str
    value: Any

    def matches(self, item: dict) -> bool:
        container = item.get(self.attribute)
        return container is not None and self.value in container


Condition = Eq | Contains


class Collection(Protocol):
    name: str

    def get(self, key: str) -> dict | None: ...
    def scan(self, *conditions: Condition, projection: Iterable[str] | None = None) -> list[dict]: ...
    def put(self, item: dict) -> dict: ...
    def delete(self, key: str) -> None: ...


class SqlCollection:
    def __init__(self, db: Session, name: str):
        self.db = db
        self.name = name

    def _item(self, row: RecordORM) -> dict:
        return {**row.body, "version": row.version}

    def get(self, key: str) -> dict | None:
        row = self.db.get(RecordORM, (self.name, key))
        return self._item(row) if row else None

    def scan(self, *conditions: Condition, projection: Iterable[str] | None = None) -> list[dict]:
        rows = self.db.execute(
            select(RecordORM).where(RecordORM.collection == self.name).order_by(RecordORM.id)
        ).scalars().all()
        store_scans_total.labels(collection=self.name).inc()
        store_scanned_records_total.labels(collection=self.name).inc(len(rows))

        items = []
        for row in rows:
            item = self._item(row)
            if all(c.matches(item) for c in conditions):
                if projection is not None:
                    item = {k: item[k] for k in projection if k in item}
                items.append(item)
        return items

    def put(self, item: dict) -> dict:
        key = item["id"]
        expected = item.get("version", 0)
        body = {k: v for k, v in item.items() if k != "version"}

        if expected == 0:
            try:
                self.db.execute(
                    insert(RecordORM).values(collection=self.name, id=key, body=body, version=1)
                )
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                self._stale(key, expected)
        else:
            result = self.db.execute(
                update(RecordORM)
                .where(
                    RecordORM.collection == self.name,
                    RecordORM.id == key,
                    RecordORM.version == expected,
                )
                .values(body=body, version=expected + 1)
            )
            if result.rowcount != 1:
                self.db.rollback()
                self._stale(key, expected)
            self.db.commit()

        store_writes_total.labels(collection=self.name, operation="put").inc()
        return {**body, "version": expected + 1}

    def delete(self, key: str) -> None:
        self.db.execute(
            delete(RecordORM).where(RecordORM.collection == self.name, RecordORM.id == key)
        )
        self.db.commit()
        store_writes_total.labels(collection=self.name, operation="delete").inc()

    def _stale(self, key: str, expected: int):
        store_stale_writes_total.labels(collection=self.name).inc()
        logger.warning("stale_write_rejected", collection=self.name, id=key, version=expected)
        raise StaleRecordError()


class DocumentStore:
    """Hands out the per-collection views over one database session."""

    def __init__(self, db: Session):
        self.db = db

    def collection(self, name: str) -> SqlCollection:
        return SqlCollection(self.db, name)
