# Importing every model registers its table on Base.metadata.
from .user import Profile
from .product import Product
from .funnel import Funnel, FunnelProduct, FunnelSalesProduct
from .sale import Sale, Installment
from .commission import Commission
from .sdr import SDRAssignment, SDRCommission
from .strategic import StrategicSession, StrategicLead, QualificationCriterion
