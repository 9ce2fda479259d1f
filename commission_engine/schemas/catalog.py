from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime

from commission_engine.core.timeutils import to_naive_utc

class ProductUpsert(BaseModel):
    product_id: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., max_length=255)
    is_active: bool = True
    created_at: Optional[datetime] = None  # Catalog creation date; defaults to now for new products

    @field_validator("created_at")
    @classmethod
    def created_at_as_naive_utc(cls, v):
        return to_naive_utc(v)

class Product(BaseModel):
    id: int
    organization_id: str
    product_id: str
    name: str
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True

class PipelineStageUpsert(BaseModel):
    pipeline_id: str = Field(..., min_length=1, max_length=64)
    stage_id: str = Field(..., min_length=1, max_length=64)
    name: Optional[str] = Field(default=None, max_length=255)
    position: int = Field(..., ge=0)

class PipelineStage(BaseModel):
    id: int
    organization_id: str
    pipeline_id: str
    stage_id: str
    name: Optional[str] = None
    position: int

    class Config:
        from_attributes = True
