"""
Base repository class for the data access layer.

Query logic lives in repositories so services can be tested against
fakes of the Persistence contract instead of a database.

Example:
    class RosterPlayerRepository(BaseRepository[RosterPlayer]):
        def find_by_external_id(self, external_id: str) -> Optional[RosterPlayer]:
            return self.find_one_by(external_id=external_id)
"""
from abc import ABC
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from sqlalchemy import desc
from sqlalchemy.orm import Session

T = TypeVar("T")


class BaseRepository(Generic[T], ABC):
    """
    Common data access methods for one model type.

    Attributes:
        model_type: The SQLAlchemy model class this repository manages
        db: The database session
    """

    def __init__(self, model_type: Type[T], db: Session):
        self.model_type = model_type
        self.db = db

    def find_by_id(self, id: Any) -> Optional[T]:
        """Find a single record by primary key."""
        return self.db.get(self.model_type, id)

    def find_one_by(self, **filters) -> Optional[T]:
        """First record whose columns equal the given values."""
        return self.db.query(self.model_type).filter_by(**filters).first()

    def find_all_by(
        self,
        limit: Optional[int] = None,
        order_by: Optional[str] = None,
        **filters
    ) -> List[T]:
        """
        Records matching column filters.

        Args:
            limit: Maximum number of records to return
            order_by: Column name to order by (prefix with '-' for descending)
            **filters: Column equality filters

        Returns:
            List of records
        """
        query = self.db.query(self.model_type).filter_by(**filters)

        if order_by:
            if order_by.startswith('-'):
                query = query.order_by(desc(getattr(self.model_type, order_by[1:])))
            else:
                query = query.order_by(getattr(self.model_type, order_by))

        if limit is not None:
            query = query.limit(limit)

        return query.all()

    def create(self, **kwargs) -> T:
        """
        Create a new record.

        Returns:
            The created record (flushed so generated ids are available, not committed)
        """
        instance = self.model_type(**kwargs)
        self.db.add(instance)
        self.db.flush()
        return instance

    def update_fields(self, instance: T, values: Dict[str, Any]) -> T:
        """Set attributes on an instance, skipping unknown names."""
        for key, value in values.items():
            if hasattr(instance, key):
                setattr(instance, key, value)
        return instance

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
