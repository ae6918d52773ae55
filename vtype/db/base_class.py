from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
import uuid

from sqlalchemy.orm import declarative_base, declared_attr
from sqlalchemy import Column, Integer, MetaData

# Shared metadata for every entity table
metadata = MetaData()

class BaseMixin:
    """
    Base mixin providing common functionality for all models.
    """
    @declared_attr
    def __tablename__(cls) -> str:
        """Generate table name from class name."""
        return cls.__name__.lower()

    def model_dump(self, exclude: Optional[set] = None) -> Dict[str, Any]:
        """Convert model instance to a JSON-friendly dictionary."""
        exclude = exclude or set()
        data = {}
        for column in self.__table__.columns:
            if column.key in exclude:
                continue
            value = getattr(self, column.key)
            if isinstance(value, uuid.UUID):
                value = str(value)
            elif isinstance(value, datetime):
                value = value.isoformat()
            elif isinstance(value, Enum):
                value = value.value
            data[column.key] = value
        return data

    def update(self, **kwargs: Any) -> None:
        """Update model instance with given attributes."""
        for key, value in kwargs.items():
            if hasattr(self, key):
                setattr(self, key, value)

    def __repr__(self) -> str:
        """String representation of the model."""
        attrs = []
        for primary_key in self.__table__.primary_key.columns:
            if hasattr(self, primary_key.key):
                attrs.append(f"{primary_key.key}={getattr(self, primary_key.key)}")
        return f"<{self.__class__.__name__}({', '.join(attrs)})>"

class EntityMixin(BaseMixin):
    """
    Mixin for entity tables that require an auto-incrementing primary key.
    Models with a natural or UUID key override ``id``.
    """
    id = Column(Integer, primary_key=True, autoincrement=True)

EntityBase = declarative_base(cls=EntityMixin, metadata=metadata)
