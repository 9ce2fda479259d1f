from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from commission_engine.db.base_class import Base

class ValidationAudit(Base):
    """One row per validation run; only the approval/override fields change afterwards."""
    __tablename__ = "commission_validation_audit"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    organization_id = Column(String(64), nullable=False, index=True)
    commission_record_id = Column(Integer, ForeignKey("commission_records.id"), nullable=False, index=True)

    validation_status = Column(String(20), nullable=False)  # passed, warning, failed, override
    checks_performed = Column(JSON, nullable=False)
    requires_approval = Column(Boolean, default=False, nullable=False)

    approval_status = Column(String(20), nullable=True)  # approved
    approved_by = Column(String(64), nullable=True)
    approval_date = Column(DateTime, nullable=True)
    approval_notes = Column(Text, nullable=True)

    override_by = Column(String(64), nullable=True)
    override_reason = Column(Text, nullable=True)
    override_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    commission_record = relationship("CommissionRecord", backref="validation_audits")

    def __repr__(self):
        return f"<ValidationAudit(id={self.id}, record_id={self.commission_record_id}, status='{self.validation_status}')>"
