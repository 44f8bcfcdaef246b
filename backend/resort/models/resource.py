"""
Bookable resources.

Key design decisions:
- Exclusive resources (chalets) and shared sessions (pool slots, seatings)
  live in separate tables; reservations reference them by (resource_type, id)
- No denormalized availability columns: capacity is aggregated from
  reservations on demand
"""

from sqlalchemy import Boolean, CheckConstraint, Column, Integer, Numeric, String

from resort.db.base import Base, TimestampMixin


class ExclusiveResourceModel(Base, TimestampMixin):
    __tablename__ = "exclusive_resources"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    category = Column(String(50), nullable=False, default="chalet")
    base_price = Column(Numeric(10, 2), nullable=False)
    weekend_price = Column(Numeric(10, 2), nullable=True)
    max_guests = Column(Integer, nullable=False, default=1)
    is_active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint("base_price > 0", name="check_exclusive_base_price_positive"),
        CheckConstraint("max_guests > 0", name="check_exclusive_max_guests_positive"),
    )

    def __repr__(self) -> str:
        return f"<ExclusiveResource(id={self.id}, name={self.name})>"


class SharedSessionModel(Base, TimestampMixin):
    __tablename__ = "shared_sessions"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    category = Column(String(50), nullable=False, default="pool")
    max_capacity = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    adult_price = Column(Numeric(10, 2), nullable=True)  # NULL: price
    child_price = Column(Numeric(10, 2), nullable=True)  # NULL: half of price
    is_active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint("max_capacity > 0", name="check_session_capacity_positive"),
        CheckConstraint("price > 0", name="check_session_price_positive"),
        CheckConstraint(
            "(adult_price IS NULL OR adult_price > 0) AND (child_price IS NULL OR child_price >= 0)",
            name="check_session_party_prices_positive",
        ),
    )

    def __repr__(self) -> str:
        return f"<SharedSession(id={self.id}, name={self.name}, capacity={self.max_capacity})>"
