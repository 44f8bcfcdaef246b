"""
Price rules and stay add-ons. Both are maintained by administrators and
only read by the engine.
"""

from sqlalchemy import Boolean, CheckConstraint, Column, Date, Index, Integer, Numeric, String

from resort.db.base import Base, TimestampMixin


class PriceRuleModel(Base, TimestampMixin):
    __tablename__ = "price_rules"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, default="")
    resource_type = Column(String(20), nullable=False)
    resource_id = Column(Integer, nullable=True)  # NULL: all resources of the type
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)  # inclusive
    multiplier = Column(Numeric(6, 3), nullable=True)
    override_price = Column(Numeric(10, 2), nullable=True)
    priority = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint("end_date >= start_date", name="check_rule_dates_ordered"),
        CheckConstraint(
            "(multiplier IS NULL) <> (override_price IS NULL)",
            name="check_rule_single_adjustment",
        ),
        CheckConstraint("multiplier IS NULL OR multiplier > 0", name="check_rule_multiplier_positive"),
        Index("ix_price_rules_lookup", "resource_type", "is_active", "start_date", "end_date"),
    )

    def __repr__(self) -> str:
        return f"<PriceRule(id={self.id}, priority={self.priority}, {self.start_date}..{self.end_date})>"


class AddOnModel(Base, TimestampMixin):
    __tablename__ = "add_ons"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    price_type = Column(String(20), nullable=False, default="one_time")  # per_night, one_time
    is_active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint("price >= 0", name="check_add_on_price_non_negative"),
        CheckConstraint("price_type IN ('per_night', 'one_time')", name="check_add_on_price_type"),
    )
