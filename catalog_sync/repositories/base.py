"""
Base Repository class with common database operations.
"""

from typing import Type, TypeVar, Optional, Dict, Any, Tuple
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy import func
import logging

from ..models import Base

logger = logging.getLogger(__name__)

T = TypeVar('T', bound=Base)


class BaseRepository:
    """Base repository with common CRUD and upsert operations."""

    def __init__(self, model: Type[T], session: Session):
        self.model = model
        self.session = session

    def get(self, id: int) -> Optional[T]:
        """Get a single record by ID."""
        try:
            return self.session.get(self.model, id)
        except SQLAlchemyError as e:
            logger.error(f"Error getting {self.model.__name__} with id {id}: {e}")
            raise

    def get_by(self, **kwargs) -> Optional[T]:
        """Get a single record by field values."""
        try:
            return self.session.query(self.model).filter_by(**kwargs).first()
        except SQLAlchemyError as e:
            logger.error(f"Error getting {self.model.__name__} by {kwargs}: {e}")
            raise

    def create(self, **kwargs) -> T:
        """Create a new record."""
        try:
            instance = self.model(**kwargs)
            self.session.add(instance)
            self.session.flush()  # Flush to get ID without committing
            return instance
        except IntegrityError as e:
            logger.error(f"Integrity error creating {self.model.__name__}: {e}")
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error creating {self.model.__name__}: {e}")
            raise

    def update(self, instance: T, **kwargs) -> T:
        """Apply field values to an instance and flush."""
        try:
            for key, value in kwargs.items():
                if hasattr(instance, key):
                    setattr(instance, key, value)

            self.session.flush()
            return instance
        except IntegrityError as e:
            logger.error(f"Integrity error updating {self.model.__name__} {instance.id}: {e}")
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error updating {self.model.__name__} {instance.id}: {e}")
            raise

    def upsert(self, keys: Dict[str, Any], values: Dict[str, Any]) -> Tuple[T, bool]:
        """
        Insert or update the record identified by its unique key columns.

        Args:
            keys: Unique column values identifying the record
            values: Column values to write on insert or update

        Returns:
            (instance, created) tuple
        """
        instance = self.get_by(**keys)
        if instance is None:
            return self.create(**keys, **values), True
        return self.update(instance, **values), False

    def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        """Count records with optional equality filters."""
        try:
            query = self.session.query(func.count(self.model.id))
            if filters:
                for field, value in filters.items():
                    if hasattr(self.model, field):
                        if value is None:
                            query = query.filter(getattr(self.model, field).is_(None))
                        elif isinstance(value, list):
                            query = query.filter(getattr(self.model, field).in_(value))
                        else:
                            query = query.filter(getattr(self.model, field) == value)
            return query.scalar() or 0
        except SQLAlchemyError as e:
            logger.error(f"Error counting {self.model.__name__}: {e}")
            raise

    def exists(self, **kwargs) -> bool:
        """Check if a record exists."""
        return self.session.query(
            self.session.query(self.model).filter_by(**kwargs).exists()
        ).scalar()
