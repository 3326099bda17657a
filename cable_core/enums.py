# cable_core/enums.py

from django.db import models
from django.utils.translation import gettext_lazy as _

# -------------------- STAFF --------------------

class UserRole(models.TextChoices):
    """Operator staff roles. Authorization itself lives outside the billing core."""
    ADMIN      = 'ADMIN', _('Admin')
    MANAGER    = 'MANAGER', _('Manager')
    STAFF      = 'STAFF', _('Staff')
    TECHNICIAN = 'TECHNICIAN', _('Technician')

# -------------------- SET-TOP BOX --------------------

class BoxStatus(models.TextChoices):
    """
    Activation state of a subscriber's physical receiver.
    Stored on the Customer and driven only by BoxActionType events.
    """
    INACTIVE  = 'INACTIVE', _('Inactive')
    ACTIVE    = 'ACTIVE', _('Active')
    SUSPENDED = 'SUSPENDED', _('Suspended')

class BoxActionType(models.TextChoices):
    """Service actions that can be recorded against a customer's box."""
    ACTIVATED   = 'ACTIVATED', _('Activated')
    SUSPENDED   = 'SUSPENDED', _('Suspended')
    DEACTIVATED = 'DEACTIVATED', _('Deactivated')
    REACTIVATED = 'REACTIVATED', _('Reactivated')

# -------------------- BILLING DOCUMENTS --------------------

class BillStatus(models.TextChoices):
    """
    Lifecycle of a Bill.
    PENDING -> PARTIAL -> PAID is driven by payments, SETTLED by due settlements.
    COMPLETED is the administrative marker set once the physical bill is confirmed.
    """
    PENDING   = 'PENDING', _('Pending')
    PARTIAL   = 'PARTIAL', _('Partially Paid')
    PAID      = 'PAID', _('Paid')
    SETTLED   = 'SETTLED', _('Settled')
    COMPLETED = 'COMPLETED', _('Completed (Physical Bill Generated)')

class PaymentStatus(models.TextChoices):
    PENDING   = 'PENDING', _('Pending')
    COMPLETED = 'COMPLETED', _('Completed')
    FAILED    = 'FAILED', _('Failed')

class PaymentMethod(models.TextChoices):
    CASH          = 'CASH', _('Cash')
    UPI           = 'UPI', _('UPI')
    CARD          = 'CARD', _('Card')
    BANK_TRANSFER = 'BANK_TRANSFER', _('Bank Transfer')
    CHEQUE        = 'CHEQUE', _('Cheque')
    ONLINE        = 'ONLINE', _('Online Payment Gateway')
    OTHER         = 'OTHER', _('Other')

class PaymentSource(models.TextChoices):
    """Where the money was collected."""
    OFFICE = 'OFFICE', _('Office Counter')
    FIELD  = 'FIELD', _('Field Collection')
    ONLINE = 'ONLINE', _('Online / Customer Portal')

class DueSettlementStatus(models.TextChoices):
    PARTIAL = 'PARTIAL', _('Partially Settled')
    SETTLED = 'SETTLED', _('Settled')

# -------------------- LEDGER --------------------

class TransactionType(models.TextChoices):
    """
    Tags a ledger entry with the operation that produced it.
    BOX_* values are derived from BoxActionType via for_box_action().
    """
    BILL_GENERATED   = 'BILL_GENERATED', _('Bill Generated')
    PAYMENT_RECEIVED = 'PAYMENT_RECEIVED', _('Payment Received')
    DUE_SETTLED      = 'DUE_SETTLED', _('Due Settled')
    BOX_ACTIVATED    = 'BOX_ACTIVATED', _('Box Activated')
    BOX_SUSPENDED    = 'BOX_SUSPENDED', _('Box Suspended')
    BOX_DEACTIVATED  = 'BOX_DEACTIVATED', _('Box Deactivated')
    BOX_REACTIVATED  = 'BOX_REACTIVATED', _('Box Reactivated')

    @classmethod
    def for_box_action(cls, action_type: str) -> 'TransactionType':
        return cls(f"BOX_{str(action_type)}")


class TransactionStatus(models.TextChoices):
    PENDING   = 'PENDING', _('Pending')
    COMPLETED = 'COMPLETED', _('Completed')
    FAILED    = 'FAILED', _('Failed')
