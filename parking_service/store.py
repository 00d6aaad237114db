from abc import ABC, abstractmethod
from typing import AsyncContextManager, Type, TypeVar

from pydantic import ValidationError

from .entities import Record
from .errors import InvalidRecord, NotFound

R = TypeVar("R", bound=Record)


class Store(ABC):
    """
    Keyed storage for every entity type.

    Records are passed in as plain dicts and handed back as validated entity
    instances. Identifiers are assigned by the backend, per entity type, in
    increasing order. Both backends must behave identically; the contract
    tests in tests/test_store_contract.py run against each of them.
    """

    @abstractmethod
    async def create(self, entity: Type[R], record: dict) -> R:
        ...

    @abstractmethod
    async def get(self, entity: Type[R], record_id: int) -> R:
        ...

    @abstractmethod
    async def get_all_where(self, entity: Type[R], **filters) -> list[R]:
        ...

    @abstractmethod
    async def update(self, entity: Type[R], record_id: int, fields: dict) -> R:
        ...

    @abstractmethod
    async def delete(self, entity: Type[R], record_id: int) -> None:
        ...

    @abstractmethod
    def transaction(self) -> AsyncContextManager[None]:
        """All mutations made inside the block commit together or not at all."""

    async def lock_location(self, location_id: int) -> None:
        """Row-lock a location for the rest of the current transaction."""

    async def close(self) -> None:
        pass


def validate(entity: Type[R], data: dict) -> R:
    try:
        return entity.model_validate(data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'record'}: {err['msg']}"
            for err in e.errors()
        )
        raise InvalidRecord(f"Invalid {entity.__name__}: {problems}") from None


def build_record(entity: Type[R], record: dict, record_id: int) -> R:
    if "id" in record:
        raise InvalidRecord(f"{entity.__name__} id is assigned by the store")
    return validate(entity, {**record, "id": record_id})


def merge_record(entity: Type[R], current: R, fields: dict) -> R:
    if "id" in fields and fields["id"] != current.id:
        raise InvalidRecord(f"{entity.__name__} id cannot be changed")
    data = current.model_dump()
    data.update(fields)
    return validate(entity, data)


def check_filters(entity: Type[R], filters: dict) -> None:
    unknown = set(filters) - set(entity.model_fields)
    if unknown:
        raise InvalidRecord(f"Unknown {entity.__name__} field(s): {', '.join(sorted(unknown))}")


def matches(value, wanted) -> bool:
    if isinstance(wanted, (list, tuple, set, frozenset)):
        return value in wanted
    return value == wanted


def not_found(entity: Type[R], record_id: int) -> NotFound:
    return NotFound(f"{entity.__name__} with id {record_id} not found")
