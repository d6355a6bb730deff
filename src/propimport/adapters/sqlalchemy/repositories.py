"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select

from propimport.adapters.sqlalchemy.mappings import property_table
from propimport.domain.model import PropertyRecord

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

    from propimport.domain.ports import PropertyRepository


class SqlAlchemyPropertyRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: PropertyRecord) -> None:
        self.session.add(entity)

    def get(self, property_id: str) -> PropertyRecord | None:
        return self.session.get(PropertyRecord, property_id)

    def find_by_normalized_address(self, normalized_address: str) -> PropertyRecord | None:
        stmt = (
            select(PropertyRecord)
            .where(property_table.c.normalized_address == normalized_address)
            .order_by(property_table.c.created_at, property_table.c.id)
            .limit(1)
        )
        return self.session.execute(stmt).scalars().first()

    def update(self, record: PropertyRecord, values: dict[str, object]) -> PropertyRecord:
        record.apply(values)
        self.session.flush()
        return record


if TYPE_CHECKING:
    _repo_check: PropertyRepository = SqlAlchemyPropertyRepository(Session())
