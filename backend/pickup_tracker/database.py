"""Database-backed pickup log store."""

import logging
import os
from decimal import Decimal
from typing import List, Optional, Sequence

from sqlalchemy import BigInteger, Column, Numeric, String, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from pickup_tracker.models import PickupRecord

logger = logging.getLogger(__name__)

Base = declarative_base()


class PickupRecordDB(Base):
    """Database model for storing pickup records."""
    __tablename__ = "pickup_records"

    id = Column(BigInteger, primary_key=True, autoincrement=False)
    timestamp = Column(String, nullable=True)
    child = Column(String, nullable=True, index=True)
    pickup_time = Column(String(5), nullable=True)
    date = Column(String(10), nullable=True, index=True)
    day = Column(String, nullable=True)
    cost = Column(Numeric(6, 2), nullable=False, default=Decimal("0"))
    time_slot = Column(String, nullable=True)
    created_at = Column(String, nullable=True)

    def __repr__(self):
        return f"<PickupRecord(id={self.id}, child={self.child}, date={self.date}, cost={self.cost})>"

    @classmethod
    def from_record(cls, record: PickupRecord) -> "PickupRecordDB":
        return cls(
            id=record.id,
            timestamp=record.timestamp,
            child=record.child,
            pickup_time=record.pickup_time,
            date=record.date,
            day=record.day,
            cost=record.cost,
            time_slot=record.time_slot,
            created_at=record.created_at,
        )

    def to_record(self) -> PickupRecord:
        return PickupRecord(
            id=self.id,
            timestamp=self.timestamp,
            child=self.child,
            pickup_time=self.pickup_time,
            date=self.date,
            day=self.day,
            cost=Decimal(self.cost).quantize(Decimal("0.01")),
            time_slot=self.time_slot,
            created_at=self.created_at,
        )


class DatabaseLogStore:
    """Log store keeping pickup records in a SQL database (SQLite by default)."""

    def __init__(self, database_url: Optional[str] = None):
        """Initialize database connection."""
        self.database_url = database_url or os.getenv(
            "DATABASE_URL",
            "sqlite:///./pickup_logs.db"
        )

        # Create engine with appropriate settings for SQLite
        connect_args = {"check_same_thread": False} if "sqlite" in self.database_url else {}
        self.engine = create_engine(self.database_url, connect_args=connect_args)

        # Create session factory
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

        # Create tables if they don't exist
        Base.metadata.create_all(bind=self.engine)

    def get_session(self) -> Session:
        """Get a new database session."""
        return self.SessionLocal()

    def load(self) -> List[PickupRecord]:
        """Retrieve all pickup records, newest first."""
        session = self.get_session()
        try:
            rows = session.query(PickupRecordDB).order_by(PickupRecordDB.id.desc()).all()
            return [row.to_record() for row in rows]
        except SQLAlchemyError as e:
            logger.error("Error reading pickup records from %s: %s", self.database_url, e)
            return []
        finally:
            session.close()

    def save(self, records: Sequence[PickupRecord]) -> bool:
        """Replace the stored collection with ``records`` in one transaction."""
        session = self.get_session()
        try:
            session.query(PickupRecordDB).delete()
            session.add_all(PickupRecordDB.from_record(record) for record in records)
            session.commit()
            return True
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("Error saving pickup records to %s: %s", self.database_url, e)
            return False
        finally:
            session.close()

    def count(self) -> int:
        """Number of stored pickup records."""
        session = self.get_session()
        try:
            return session.query(PickupRecordDB).count()
        finally:
            session.close()
