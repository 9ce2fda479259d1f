from sqlalchemy import Column, Integer, String, Date, DateTime, Numeric, ForeignKey
from sqlalchemy.orm import relationship, backref
from sqlalchemy.sql import func
from commission_engine.db.base_class import Base

class RecurringCommissionTracking(Base):
    __tablename__ = "recurring_commission_tracking"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    organization_id = Column(String(64), nullable=False, index=True)
    commission_record_id = Column(Integer, ForeignKey("commission_records.id"), nullable=False, unique=True)
    subscription_id = Column(String(64), nullable=False, index=True)
    product_id = Column(String(64), nullable=False, index=True)

    tracking_type = Column(String(20), nullable=False)  # initial, renewal, trailing
    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)
    period_number = Column(Integer, nullable=False)

    base_amount = Column(Numeric(12, 2), nullable=False)
    commission_rate = Column(Numeric(7, 4), nullable=False)
    commission_amount = Column(Numeric(12, 2), nullable=False)

    status = Column(String(20), nullable=False, default="pending", index=True)  # scheduled, pending, earned, paid
    earned_date = Column(Date, nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    commission_record = relationship("CommissionRecord", backref=backref("recurring_tracking", uselist=False))

    def __repr__(self):
        return f"<RecurringCommissionTracking(id={self.id}, subscription_id='{self.subscription_id}', period={self.period_number}, status='{self.status}')>"
