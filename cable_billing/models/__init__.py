# cable_billing/models/__init__.py

from .base import BillingBaseModel, AppendOnlyModel
from .customer import Customer
from .plan import Plan
from .billing import Bill, Payment, DueSettlement
from .box import BoxActivation
from .ledger import Transaction, SOURCE_FIELDS

__all__ = [
    'BillingBaseModel', 'AppendOnlyModel',
    'Customer', 'Plan',
    'Bill', 'Payment', 'DueSettlement',
    'BoxActivation',
    'Transaction', 'SOURCE_FIELDS',
]
