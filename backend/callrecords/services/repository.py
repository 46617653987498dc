import logging
from decimal import Decimal
from typing import Any, Callable, Generic, Iterable, List, Optional, Type, TypeVar

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, make_transient

from callrecords.core.errors import Error, Result
from callrecords.models import CallRecord

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")

# Predicates, selectors and orderings are functions of the mapped class that
# return SQL expressions, so filtering, aggregation and sorting all run in the
# database.
Predicate = Callable[[Any], Any]
Selector = Callable[[Any], Any]
OrderBy = Callable[[Any], Any]


def _to_decimal(value: Any) -> Decimal:
    if value is None:
        return Decimal(0)
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class Repository(Generic[ModelT]):
    def __init__(self, db: Session, model: Type[ModelT]) -> None:
        self.db = db
        self.model = model

    def _query(self, predicate: Optional[Predicate]):
        query = self.db.query(self.model)
        if predicate is not None:
            query = query.filter(predicate(self.model))
        return query

    def _failed(self, action: str) -> Error:
        logger.exception("Store failed to %s %s", action, self.model.__tablename__)
        self.db.rollback()
        return Error.unexpected(description=f"Store failed to {action} records.", code=f"store_{action}_failed")

    def count(self, predicate: Optional[Predicate] = None) -> Result[int]:
        try:
            return Result.ok(self._query(predicate).count())
        except SQLAlchemyError:
            return Result.fail(self._failed("count"))

    def sum(self, predicate: Optional[Predicate], selector: Selector) -> Result[Decimal]:
        try:
            query = self.db.query(func.sum(selector(self.model)))
            if predicate is not None:
                query = query.filter(predicate(self.model))
            return Result.ok(_to_decimal(query.scalar()))
        except SQLAlchemyError:
            return Result.fail(self._failed("sum"))

    def average(self, predicate: Optional[Predicate], selector: Selector) -> Result[Decimal]:
        try:
            query = self.db.query(func.avg(selector(self.model)))
            if predicate is not None:
                query = query.filter(predicate(self.model))
            return Result.ok(_to_decimal(query.scalar()))
        except SQLAlchemyError:
            return Result.fail(self._failed("average"))

    def list(
        self,
        predicate: Optional[Predicate] = None,
        order_by: Optional[OrderBy] = None,
        skip: Optional[int] = None,
        take: Optional[int] = None,
    ) -> Result[List[ModelT]]:
        try:
            query = self._query(predicate)
            if order_by is not None:
                clauses = order_by(self.model)
                if not isinstance(clauses, (list, tuple)):
                    clauses = (clauses,)
                query = query.order_by(*clauses)
            if skip:
                query = query.offset(skip)
            if take is not None:
                query = query.limit(take)
            return Result.ok(query.all())
        except SQLAlchemyError:
            return Result.fail(self._failed("list"))

    def get_single(self, predicate: Predicate) -> Result[Optional[ModelT]]:
        try:
            return Result.ok(self._query(predicate).first())
        except SQLAlchemyError:
            return Result.fail(self._failed("get"))

    def add(self, record: ModelT) -> Result[ModelT]:
        try:
            self.db.add(record)
            self.db.commit()
            self.db.refresh(record)
            return Result.ok(record)
        except SQLAlchemyError:
            return Result.fail(self._failed("add"))

    def add_range(self, records: Iterable[ModelT]) -> Result[bool]:
        try:
            self.db.add_all(list(records))
            self.db.commit()
            return Result.ok(True)
        except SQLAlchemyError:
            return Result.fail(self._failed("add_range"))

    def update(self, record: ModelT) -> Result[ModelT]:
        try:
            self.db.add(record)
            self.db.commit()
            self.db.refresh(record)
            return Result.ok(record)
        except SQLAlchemyError:
            return Result.fail(self._failed("update"))

    def remove(self, record: ModelT) -> Result[ModelT]:
        try:
            self.db.delete(record)
            self.db.flush()
            # keep the loaded values readable once the row is gone
            make_transient(record)
            self.db.commit()
            return Result.ok(record)
        except SQLAlchemyError:
            return Result.fail(self._failed("remove"))


class CallRecordRepository(Repository[CallRecord]):
    def __init__(self, db: Session) -> None:
        super().__init__(db, CallRecord)
