from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, Numeric, Index
from sqlalchemy.sql import func, true
from commission_engine.db.base_class import Base

class CommissionAssignment(Base):
    __tablename__ = "commission_assignments"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    organization_id = Column(String(64), nullable=False, index=True)
    assignment_type = Column(String(20), nullable=False)  # opportunity, product
    opportunity_id = Column(String(64), nullable=True, index=True)
    product_id = Column(String(64), nullable=True, index=True)

    # Payee: a team member id or the external CRM user id
    user_id = Column(String(64), nullable=False, index=True)
    user_name = Column(String(255), nullable=True)
    user_email = Column(String(255), nullable=True)

    commission_type = Column(String(30), nullable=False)  # percentage_gross, percentage_profit, fixed_amount
    base_rate = Column(Numeric(12, 4), nullable=False)  # Percent, or a flat amount for fixed_amount

    required_stage_id = Column(String(64), nullable=True)
    stage_requirement_type = Column(String(20), nullable=True)  # reached, exact

    is_active = Column(Boolean, default=True, nullable=False)
    is_disabled = Column(Boolean, default=False, nullable=False)
    expiry_date = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    # One active assignment per opportunity per payee
    __table_args__ = (
        Index(
            "uq_commission_assignments_active_opportunity_user",
            "organization_id", "opportunity_id", "user_id",
            unique=True,
            sqlite_where=is_active == true(),
            postgresql_where=is_active == true(),
        ),
    )

    def __repr__(self):
        return f"<CommissionAssignment(id={self.id}, type='{self.assignment_type}', user_id='{self.user_id}', rate={self.base_rate})>"
