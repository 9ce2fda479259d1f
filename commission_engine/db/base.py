# Import all the models, so that Base has them before being
# imported by create_all / Alembic
from commission_engine.db.base_class import Base  # noqa: F401
from commission_engine.models.catalog import Product, PipelineStage  # noqa: F401
from commission_engine.models.product_rule import ProductCommissionRule  # noqa: F401
from commission_engine.models.event import CommissionEvent  # noqa: F401
from commission_engine.models.assignment import CommissionAssignment  # noqa: F401
from commission_engine.models.commission import CommissionRecord  # noqa: F401
from commission_engine.models.recurring import RecurringCommissionTracking  # noqa: F401
from commission_engine.models.lifecycle import SubscriptionLifecycleEvent  # noqa: F401
from commission_engine.models.validation_audit import ValidationAudit  # noqa: F401
