"""
Reservation model shared by stays and session tickets.

Key design decisions:
- Status field allows cancellation without deleting records; cancelled rows
  are filtered out of conflict and capacity checks, never removed
- Composite index on (resource_type, resource_id, status) backs every
  conflict and capacity query
- Partial unique index on active stays' (resource_id, interval_start) is a
  second line of defense behind the per-resource lock; it cannot express
  interval overlap on its own
"""

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    text,
)

from resort.db.base import Base, TimestampMixin

ACTIVE_STAY_PREDICATE = "resource_type = 'exclusive' AND status NOT IN ('cancelled', 'checked_out')"


class ReservationModel(Base, TimestampMixin):
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, index=True)
    reference = Column(String(32), nullable=False, unique=True)
    resource_type = Column(String(20), nullable=False)  # exclusive, shared
    resource_id = Column(Integer, nullable=False)
    interval_start = Column(Date, nullable=True)
    interval_end = Column(Date, nullable=True)
    session_date = Column(Date, nullable=True)
    party_size = Column(Integer, nullable=False, default=1)
    status = Column(String(20), nullable=False, default="confirmed")
    unit_price_snapshot = Column(Numeric(10, 2), nullable=False)
    add_ons_amount = Column(Numeric(10, 2), nullable=False, default=0)
    deposit_amount = Column(Numeric(10, 2), nullable=False, default=0)
    total_price = Column(Numeric(10, 2), nullable=False)
    details = Column(JSON, nullable=False, default=dict)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    checked_in_at = Column(DateTime(timezone=True), nullable=True)
    checked_out_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("party_size > 0", name="check_reservation_party_size_positive"),
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'checked_in', 'used', 'checked_out', 'cancelled', 'no_show')",
            name="check_reservation_status",
        ),
        CheckConstraint(
            "(resource_type = 'exclusive' AND interval_start IS NOT NULL AND interval_end > interval_start)"
            " OR (resource_type = 'shared' AND session_date IS NOT NULL)",
            name="check_reservation_shape",
        ),
        Index("ix_reservations_resource_status", "resource_type", "resource_id", "status"),
        Index("ix_reservations_session_date", "resource_id", "session_date"),
        Index(
            "uq_active_stay_start",
            "resource_id",
            "interval_start",
            unique=True,
            postgresql_where=text(ACTIVE_STAY_PREDICATE),
            sqlite_where=text(ACTIVE_STAY_PREDICATE),
        ),
    )

    def __repr__(self) -> str:
        return f"<Reservation(id={self.id}, ref={self.reference}, status={self.status})>"
