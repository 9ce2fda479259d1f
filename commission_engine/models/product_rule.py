from sqlalchemy import Column, Integer, String, Text, Boolean, Date, DateTime, Numeric, ForeignKey
from sqlalchemy.sql import func
from commission_engine.db.base_class import Base

class ProductCommissionRule(Base):
    __tablename__ = "commission_product_rules"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    organization_id = Column(String(64), nullable=False, index=True)
    product_id = Column(String(64), nullable=False, index=True)
    priority = Column(Integer, nullable=False, default=100)

    initial_sale_rate = Column(Numeric(7, 4), nullable=False, default=10)  # Percent
    renewal_rate = Column(Numeric(7, 4), nullable=False, default=5)  # Percent
    mrr_commission_type = Column(String(30), nullable=True, default="duration")  # first_payment_only, duration, trailing
    mrr_duration_months = Column(Integer, nullable=True, default=12)
    trailing_months = Column(Integer, nullable=True, default=6)
    trailing_rate_multiplier = Column(Numeric(5, 4), nullable=False, default=0.5)  # Applied to renewal_rate in the trailing window

    min_sale_amount = Column(Numeric(12, 2), nullable=True)
    max_commission_amount = Column(Numeric(12, 2), nullable=True)
    estimated_margin_percentage = Column(Numeric(7, 4), nullable=True)
    max_commission_of_margin = Column(Numeric(7, 4), nullable=True, default=50)  # Percent of margin
    requires_manager_approval = Column(Boolean, default=False, nullable=False)
    approval_threshold = Column(Numeric(12, 2), nullable=True)

    is_active = Column(Boolean, default=True, nullable=False, index=True)
    effective_date = Column(Date, nullable=True)
    expiry_date = Column(Date, nullable=True)
    created_by = Column(String(64), nullable=True)
    notes = Column(Text, nullable=True)
    # Set when this row replaced a rule that was already referenced by commission records
    supersedes_rule_id = Column(Integer, ForeignKey("commission_product_rules.id"), nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<ProductCommissionRule(id={self.id}, product_id='{self.product_id}', type='{self.mrr_commission_type}', active={self.is_active})>"
