from .token import TokenData
from .catalog import (
    ProductUpsert,
    Product,
    PipelineStageUpsert,
    PipelineStage
)
from .product_rule import (
    ProductCommissionRuleBase,
    ProductCommissionRuleCreate,
    ProductCommissionRuleUpdate,
    ProductCommissionRule
)
from .assignment import (
    CommissionAssignmentBase,
    CommissionAssignmentCreate,
    CommissionAssignment
)
from .commission import (
    CommissionRecordCreate,
    CommissionRecord as CommissionRecordSchema, # Alias to avoid clash with the CommissionRecord model
    CalculationDetails,
    SubscriptionCalculation,
    OpportunityCalculation,
    BonusCalculation,
    ManualBonusCreate,
    ApprovalRequest,
    OverrideRequest,
    ActionResult,
    CommissionList
)
from .recurring import (
    RecurringTrackingCreate,
    RecurringCommissionTracking,
    TrackingStatusUpdate,
    TrackingStats,
    TrackingList
)
from .event import (
    CommissionEventCreate,
    CommissionEvent,
    CommissionableEventRequest,
    RecordEventResult,
    RecurringEventResponse
)
from .validation import (
    ValidationCheck,
    ValidationResult,
    ValidationAudit
)
from .lifecycle import (
    SubscriptionLifecycleEvent,
    SubscriptionLifecycle
)
