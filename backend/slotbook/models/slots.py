from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text, UniqueConstraint, false

from sqlalchemy.orm import declarative_base

Base = declarative_base()
metadata = Base.metadata


class Times(Base):
    __tablename__ = 'times'
    __table_args__ = (
        UniqueConstraint('date', 'time', name='ux_times_date_time'),
    )

    id = Column(Integer, primary_key=True)
    date = Column(String(20), nullable=False)
    time = Column(String(20), nullable=False)
    booked = Column(Boolean, nullable=False, default=False, server_default=false())
    name = Column(String(200))
    phone = Column(String(50))
    note = Column(Text)
    booked_at = Column(DateTime(timezone=True))


class Bookings(Base):
    # Audit trail: no FK to times, rows must outlive slot deletion untouched
    __tablename__ = 'bookings'

    id = Column(Integer, primary_key=True)
    time_id = Column(Integer, nullable=False, index=True)
    date = Column(String(20), nullable=False)
    time = Column(String(20), nullable=False)
    name = Column(String(200), nullable=False)
    phone = Column(String(50))
    note = Column(Text)
    booked_at = Column(DateTime(timezone=True), nullable=False)
