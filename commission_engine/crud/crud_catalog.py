from sqlalchemy.orm import Session
from typing import Optional, List

from commission_engine.core.timeutils import utcnow
from commission_engine.models.catalog import Product, PipelineStage
from commission_engine.schemas.catalog import ProductUpsert, PipelineStageUpsert

def get_product(db: Session, *, organization_id: str, product_id: str) -> Optional[Product]:
    return (
        db.query(Product)
        .filter(Product.organization_id == organization_id, Product.product_id == product_id)
        .first()
    )

def upsert_product(db: Session, *, organization_id: str, obj_in: ProductUpsert) -> Product:
    """
    Insert or update a catalog product. created_at is only taken from the
    payload; an existing product keeps its original date otherwise.
    """
    db_obj = get_product(db, organization_id=organization_id, product_id=obj_in.product_id)
    if db_obj is None:
        db_obj = Product(
            organization_id=organization_id,
            product_id=obj_in.product_id,
            created_at=obj_in.created_at or utcnow(),
        )
    db_obj.name = obj_in.name
    db_obj.is_active = obj_in.is_active
    if obj_in.created_at is not None:
        db_obj.created_at = obj_in.created_at
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj

def get_stage(db: Session, *, organization_id: str, stage_id: str) -> Optional[PipelineStage]:
    return (
        db.query(PipelineStage)
        .filter(PipelineStage.organization_id == organization_id, PipelineStage.stage_id == stage_id)
        .first()
    )

def get_stages(db: Session, *, organization_id: str, pipeline_id: Optional[str] = None) -> List[PipelineStage]:
    query = db.query(PipelineStage).filter(PipelineStage.organization_id == organization_id)
    if pipeline_id:
        query = query.filter(PipelineStage.pipeline_id == pipeline_id)
    return query.order_by(PipelineStage.pipeline_id, PipelineStage.position).all()

def upsert_stages(db: Session, *, organization_id: str, stages_in: List[PipelineStageUpsert]) -> List[PipelineStage]:
    result = []
    for stage_in in stages_in:
        db_obj = get_stage(db, organization_id=organization_id, stage_id=stage_in.stage_id)
        if db_obj is None:
            db_obj = PipelineStage(organization_id=organization_id, stage_id=stage_in.stage_id)
        db_obj.pipeline_id = stage_in.pipeline_id
        db_obj.name = stage_in.name
        db_obj.position = stage_in.position
        db.add(db_obj)
        result.append(db_obj)
    db.commit()
    for db_obj in result:
        db.refresh(db_obj)
    return result
