from sqlalchemy import Column, Integer, String, DateTime, Numeric, UniqueConstraint
from sqlalchemy.sql import func
from commission_engine.db.base_class import Base

class SubscriptionLifecycleEvent(Base):
    """Append-only subscription history. Never updated or deleted."""
    __tablename__ = "subscription_lifecycle"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    organization_id = Column(String(64), nullable=False, index=True)
    subscription_id = Column(String(64), nullable=False, index=True)
    product_id = Column(String(64), nullable=True)
    contact_id = Column(String(64), nullable=True)

    event_type = Column(String(20), nullable=False)  # created, renewed
    period_number = Column(Integer, nullable=False)
    event_date = Column(DateTime, server_default=func.now(), nullable=False)
    mrr_amount = Column(Numeric(12, 2), nullable=True)
    commission_impact = Column(String(30), nullable=True)  # new_commission, no_commission

    # A second writer for the same period fails here instead of double counting
    __table_args__ = (
        UniqueConstraint("organization_id", "subscription_id", "period_number", name="uq_subscription_lifecycle_period"),
    )

    def __repr__(self):
        return f"<SubscriptionLifecycleEvent(subscription_id='{self.subscription_id}', type='{self.event_type}', period={self.period_number})>"
