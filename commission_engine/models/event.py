from sqlalchemy import Column, Integer, String, DateTime, Numeric, JSON
from sqlalchemy.sql import func
from commission_engine.db.base_class import Base

class CommissionEvent(Base):
    """Immutable fact: something happened that may earn a commission."""
    __tablename__ = "commission_events"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    organization_id = Column(String(64), nullable=False, index=True)
    event_source = Column(String(20), nullable=False, index=True)  # subscription, opportunity, manual
    event_type = Column(String(50), nullable=False)  # E.g., "subscription_payment", "stage_change", "manual_bonus"

    product_id = Column(String(64), nullable=True, index=True)
    subscription_id = Column(String(64), nullable=True, index=True)
    opportunity_id = Column(String(64), nullable=True, index=True)
    contact_id = Column(String(64), nullable=True)

    event_amount = Column(Numeric(12, 2), nullable=False)
    event_date = Column(DateTime, server_default=func.now(), nullable=False)
    event_data = Column(JSON, nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<CommissionEvent(id={self.id}, source='{self.event_source}', type='{self.event_type}', amount={self.event_amount})>"
