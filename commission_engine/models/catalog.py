from sqlalchemy import Column, Integer, String, Boolean, DateTime, UniqueConstraint
from sqlalchemy.sql import func
from commission_engine.db.base_class import Base

class Product(Base):
    """Product as known to the external catalog. Read by the validator."""
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    organization_id = Column(String(64), nullable=False, index=True)
    product_id = Column(String(64), nullable=False, index=True)  # External product identifier
    name = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)  # When the product became sellable
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (UniqueConstraint("organization_id", "product_id", name="uq_products_org_product"),)

    def __repr__(self):
        return f"<Product(id={self.id}, product_id='{self.product_id}', active={self.is_active})>"


class PipelineStage(Base):
    __tablename__ = "pipeline_stages"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    organization_id = Column(String(64), nullable=False, index=True)
    pipeline_id = Column(String(64), nullable=False, index=True)
    stage_id = Column(String(64), nullable=False, index=True)
    name = Column(String(255), nullable=True)
    position = Column(Integer, nullable=False)  # 0-based order within the pipeline
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (UniqueConstraint("organization_id", "stage_id", name="uq_pipeline_stages_org_stage"),)

    def __repr__(self):
        return f"<PipelineStage(stage_id='{self.stage_id}', pipeline_id='{self.pipeline_id}', position={self.position})>"
