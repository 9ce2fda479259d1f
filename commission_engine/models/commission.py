from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, Numeric, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from commission_engine.db.base_class import Base

class CommissionRecord(Base):
    __tablename__ = "commission_records"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    organization_id = Column(String(64), nullable=False, index=True)
    event_id = Column(Integer, ForeignKey("commission_events.id"), nullable=False, index=True)
    assignment_id = Column(Integer, ForeignKey("commission_assignments.id"), nullable=False, index=True)
    product_rule_id = Column(Integer, ForeignKey("commission_product_rules.id"), nullable=True, index=True)  # Rule the rate was taken from

    # Payee snapshot at calculation time
    user_id = Column(String(64), nullable=False, index=True)
    user_name = Column(String(255), nullable=True)
    user_email = Column(String(255), nullable=True)

    base_amount = Column(Numeric(12, 2), nullable=False)
    commission_rate = Column(Numeric(7, 4), nullable=False)  # Percent
    commission_amount = Column(Numeric(12, 2), nullable=False)
    calculation_method = Column(String(50), nullable=False, index=True)  # E.g., "renewal_subscription", "percentage_gross", "manual_bonus"
    calculation_details = Column(JSON, nullable=True)  # Versioned trace of how the amount was derived

    status = Column(String(20), nullable=False, default="pending", index=True)  # pending, approved, paid
    is_due_for_payout = Column(Boolean, default=False, nullable=False)
    approved_by = Column(String(64), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    approval_notes = Column(Text, nullable=True)
    paid_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    event = relationship("CommissionEvent", backref="commission_records")
    assignment = relationship("CommissionAssignment", backref="commission_records")
    product_rule = relationship("ProductCommissionRule")

    def __repr__(self):
        return f"<CommissionRecord(id={self.id}, event_id={self.event_id}, user_id='{self.user_id}', amount={self.commission_amount}, status='{self.status}')>"
