from .token import Token, TokenData
from .user import (
    ProfileBase,
    ProfileCreate,
    ProfileUpdate,
    Profile,
    ProfileNested
)
from .product import (
    ProductBase,
    ProductCreate,
    ProductUpdate,
    Product
)
from .funnel import (
    FunnelBase,
    FunnelCreate,
    Funnel,
    FunnelProductLink,
    FunnelSalesProductLink,
    FunnelProduct,
    FunnelSalesProduct,
    RevenueSummary,
    MatchedSale
)
from .sale import (
    SaleBase,
    SaleCreate,
    Sale,
    Installment,
    InstallmentStatusUpdate,
    SellerAssignment,
    BulkSellerAssignment,
    SellerAssignmentResult,
    InstallmentImportRecord,
    InstallmentImportRequest,
    InstallmentImportResult
)
from .commission import (
    CommissionBase,
    CommissionCreate,
    Commission as CommissionSchema, # Alias to avoid clash if Commission model is also imported directly
    CommissionNestedInstallment,
    CommissionSummary
)
from .sdr import (
    SDRAssignmentCreate,
    SDRAssignment,
    SDRRejection,
    SDRApprovalResult,
    SDRCommission,
    SDRCommissionSummary
)
from .strategic import (
    StrategicSessionCreate,
    StrategicSession,
    QualificationCriterionCreate,
    QualificationCriterion,
    StrategicLead,
    LeadSyncRequest,
    LeadSyncResult,
    LeadRecalculateResult
)
