# cable_billing/models/customer.py

from django.db import models
from django.utils.translation import gettext_lazy as _
from simple_history.models import HistoricalRecords

from cable_core.enums import BoxStatus
from cable_core.utils import ZERO
from .base import BillingBaseModel

# =============================================================================
# Customer Model
# =============================================================================
class Customer(BillingBaseModel):
    """
    A subscriber account.

    The billing core only ever touches the billing-cycle dates, the
    carry-forward balance and the box fields; identity data is maintained
    elsewhere.
    """
    account_no = models.CharField(_("Account No"), max_length=50, unique=True)
    customer_number = models.CharField(_("Customer Number"), max_length=50, unique=True)
    first_name = models.CharField(_("First Name"), max_length=100)
    last_name = models.CharField(_("Last Name"), max_length=100, blank=True)
    email = models.EmailField(_("Email"), blank=True)
    phone = models.CharField(_("Phone"), max_length=20)
    address = models.TextField(_("Address"), blank=True)
    city = models.CharField(_("City"), max_length=100, blank=True)
    state = models.CharField(_("State"), max_length=100, blank=True)
    zip_code = models.CharField(_("Zip Code"), max_length=20, blank=True)
    serial_number = models.CharField(_("Box Serial Number"), max_length=100, blank=True)
    vc_number = models.CharField(_("VC Number"), max_length=100, blank=True)

    balance = models.DecimalField(
        _("Balance"), max_digits=12, decimal_places=2, default=ZERO,
        help_text=_("Carry-forward amount. Positive: customer owes; negative: customer has credit.")
    )
    last_bill_date = models.DateTimeField(_("Last Bill Date"), null=True, blank=True)
    next_bill_date = models.DateTimeField(_("Next Bill Date"), null=True, blank=True)

    box_status = models.CharField(
        _("Box Status"), max_length=20, choices=BoxStatus.choices, default=BoxStatus.INACTIVE, db_index=True
    )
    box_activated_at = models.DateTimeField(_("Box Activated At"), null=True, blank=True)
    last_box_status_changed_at = models.DateTimeField(_("Box Status Changed At"), null=True, blank=True)
    notes = models.TextField(_("Notes"), blank=True)

    history = HistoricalRecords()

    class Meta:
        db_table = 'customers'
        verbose_name = _("Customer")
        verbose_name_plural = _("Customers")
        ordering = ['account_no']

    def __str__(self):
        return f"{self.account_no} - {self.full_name}"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
