# db/base_class.py
from sqlalchemy.orm import as_declarative, declared_attr
from sqlalchemy import Column, DateTime

from callcrm.services.clock import utcnow


@as_declarative()
class Base:

    # Generate __tablename__ automatically if not provided
    @declared_attr
    def __tablename__(cls) -> str:
        return cls.__name__.lower()

    # Timestamps for all tables; services pass explicit values from their clock
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
