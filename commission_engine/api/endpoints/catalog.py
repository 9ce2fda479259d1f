from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from commission_engine.core.dependencies import Principal, get_current_principal
from commission_engine.crud import crud_catalog
from commission_engine.db.session import get_db
from commission_engine.schemas.catalog import PipelineStage, PipelineStageUpsert, Product, ProductUpsert

router = APIRouter()

@router.put("/products", response_model=Product)
async def upsert_product(
    product_in: ProductUpsert,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    Called by the product sync job. Creates or updates one catalog product.
    """
    return crud_catalog.upsert_product(db, organization_id=principal.organization_id, obj_in=product_in)

@router.put("/stages", response_model=List[PipelineStage])
async def upsert_stages(
    stages_in: List[PipelineStageUpsert],
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    Called by the CRM sync job with the ordered stages of one or more pipelines.
    """
    return crud_catalog.upsert_stages(db, organization_id=principal.organization_id, stages_in=stages_in)

@router.get("/stages", response_model=List[PipelineStage])
async def read_stages(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    pipeline_id: Optional[str] = Query(None)
):
    return crud_catalog.get_stages(db, organization_id=principal.organization_id, pipeline_id=pipeline_id)
