import itertools
import logging
from collections import defaultdict
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import Optional, Type

from .store import R, Store, build_record, check_filters, matches, merge_record, not_found

logger = logging.getLogger(__name__)


class MemoryStore(Store):
    """
    Process-local store backed by dicts.

    No method awaits between reading and writing a table, so each single
    operation is atomic on the event loop. Transactions keep an undo journal
    per task (a ContextVar), which lets two tasks hold transactions on
    different locations at the same time without rolling back each other.
    """

    def __init__(self):
        self._tables: dict[type, dict[int, R]] = defaultdict(dict)
        self._ids: dict[type, itertools.count] = defaultdict(lambda: itertools.count(1))
        self._journal: ContextVar[Optional[list]] = ContextVar("memory_store_journal", default=None)

    def _remember(self, entity: type, record_id: int, previous) -> None:
        journal = self._journal.get()
        if journal is not None:
            journal.append((entity, record_id, previous))

    async def create(self, entity: Type[R], record: dict) -> R:
        obj = build_record(entity, record, next(self._ids[entity]))
        self._tables[entity][obj.id] = obj
        self._remember(entity, obj.id, None)
        return obj.model_copy()

    async def get(self, entity: Type[R], record_id: int) -> R:
        obj = self._tables[entity].get(record_id)
        if obj is None:
            raise not_found(entity, record_id)
        return obj.model_copy()

    async def get_all_where(self, entity: Type[R], **filters) -> list[R]:
        check_filters(entity, filters)
        rows = sorted(self._tables[entity].values(), key=lambda r: r.id)
        return [
            r.model_copy()
            for r in rows
            if all(matches(getattr(r, k), v) for k, v in filters.items())
        ]

    async def update(self, entity: Type[R], record_id: int, fields: dict) -> R:
        current = self._tables[entity].get(record_id)
        if current is None:
            raise not_found(entity, record_id)
        merged = merge_record(entity, current, fields)
        self._tables[entity][record_id] = merged
        self._remember(entity, record_id, current)
        return merged.model_copy()

    async def delete(self, entity: Type[R], record_id: int) -> None:
        current = self._tables[entity].pop(record_id, None)
        if current is None:
            raise not_found(entity, record_id)
        self._remember(entity, record_id, current)

    @asynccontextmanager
    async def transaction(self):
        if self._journal.get() is not None:
            yield
            return

        journal = []
        token = self._journal.set(journal)
        try:
            yield
        except BaseException:
            self._undo(journal)
            raise
        finally:
            self._journal.reset(token)

    def _undo(self, journal: list) -> None:
        logger.debug("rolling back %d in-memory change(s)", len(journal))
        for entity, record_id, previous in reversed(journal):
            if previous is None:
                self._tables[entity].pop(record_id, None)
            else:
                self._tables[entity][record_id] = previous
