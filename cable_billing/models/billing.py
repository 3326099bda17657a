# cable_billing/models/billing.py

import logging
from datetime import datetime
from typing import List

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _
from simple_history.models import HistoricalRecords

from cable_core.enums import (
    BillStatus, PaymentStatus, PaymentMethod, PaymentSource, DueSettlementStatus
)
from cable_core.utils import ZERO, now
from cable_core.validators import validate_positive_amount, validate_non_negative_amount
from .base import BillingBaseModel, AppendOnlyModel
from .customer import Customer
from .plan import Plan

logger = logging.getLogger("cable_billing.models.billing")


# =============================================================================
# Bill Model
# =============================================================================
class Bill(BillingBaseModel):
    """
    A bill issued to a customer for one or more plans.

    `amount` already includes the carry-forward balance the customer had when
    the bill was generated (kept in `previous_balance`). A negative carry-forward
    (credit) can push the amount below zero.
    """
    bill_number = models.CharField(_("Bill Number"), max_length=50, unique=True, editable=False)
    customer = models.ForeignKey(
        Customer, on_delete=models.PROTECT, related_name='bills', verbose_name=_("Customer")
    )
    plans = models.ManyToManyField(Plan, related_name='bills', verbose_name=_("Plans"))
    bill_date = models.DateTimeField(_("Bill Date"), db_index=True)
    due_date = models.DateTimeField(_("Due Date"), db_index=True)
    amount = models.DecimalField(_("Amount"), max_digits=12, decimal_places=2)
    previous_balance = models.DecimalField(
        _("Previous Balance"), max_digits=12, decimal_places=2, default=ZERO,
        help_text=_("Customer balance folded into this bill at generation.")
    )
    paid_amount = models.DecimalField(
        _("Paid Amount"), max_digits=12, decimal_places=2, default=ZERO,
        validators=[validate_non_negative_amount]
    )
    paid_at = models.DateTimeField(_("Paid At"), null=True, blank=True)
    status = models.CharField(
        _("Status"), max_length=20, choices=BillStatus.choices, default=BillStatus.PENDING, db_index=True
    )
    is_physical_bill_generated = models.BooleanField(_("Physical Bill Generated"), default=False)
    notes = models.TextField(_("Notes"), blank=True)
    generated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='generated_bills', verbose_name=_("Generated By")
    )

    history = HistoricalRecords()

    class Meta:
        db_table = 'bills'
        verbose_name = _("Bill")
        verbose_name_plural = _("Bills")
        ordering = ['-bill_date', '-created_at']

    def __str__(self):
        return f"{self.bill_number} ({self.customer_id}) - {self.amount}"

    def apply_payment_total(self, total_paid, when: datetime) -> List[str]:
        """
        Sets the cumulative paid amount and derives the payment status from it.

        The status becomes PAID once the total covers the bill amount. Below
        that, an open bill (PENDING or PARTIAL) becomes PARTIAL while SETTLED
        and COMPLETED bills keep their status. `paid_at` is stamped only the
        first time the bill reaches PAID. Returns the field names to pass to
        save(update_fields=...).
        """
        original_status = self.status
        self.paid_amount = total_paid
        if total_paid >= self.amount:
            self.status = BillStatus.PAID
            if self.paid_at is None:
                self.paid_at = when
        elif self.status not in (BillStatus.SETTLED, BillStatus.COMPLETED):
            self.status = BillStatus.PARTIAL

        if original_status != self.status:
            logger.info(f"Bill {self.bill_number}: Status '{original_status}'->'{self.status}'. Paid:{total_paid}")
        return ['paid_amount', 'status', 'paid_at', 'updated_at']

    def mark_settled(self) -> List[str]:
        self.status = BillStatus.SETTLED
        return ['status', 'updated_at']

    def confirm_physical_bill(self) -> List[str]:
        """Administrative confirmation that the printed bill was produced."""
        self.status = BillStatus.COMPLETED
        self.is_physical_bill_generated = True
        return ['status', 'is_physical_bill_generated', 'updated_at']


# =============================================================================
# Payment Model
# =============================================================================
class Payment(AppendOnlyModel):
    """A payment received from a customer, optionally applied to one bill."""
    payment_number = models.CharField(_("Payment Number"), max_length=50, unique=True, editable=False)
    customer = models.ForeignKey(
        Customer, on_delete=models.PROTECT, related_name='payments', verbose_name=_("Customer")
    )
    bill = models.ForeignKey(
        Bill, on_delete=models.PROTECT, null=True, blank=True, related_name='payments', verbose_name=_("Bill")
    )
    amount = models.DecimalField(
        _("Amount"), max_digits=12, decimal_places=2, validators=[validate_positive_amount]
    )
    payment_method = models.CharField(_("Payment Method"), max_length=20, choices=PaymentMethod.choices)
    payment_source = models.CharField(
        _("Payment Source"), max_length=20, choices=PaymentSource.choices, default=PaymentSource.OFFICE
    )
    payment_date = models.DateTimeField(_("Payment Date"), default=now, db_index=True)
    status = models.CharField(
        _("Status"), max_length=20, choices=PaymentStatus.choices, default=PaymentStatus.COMPLETED, db_index=True
    )
    notes = models.TextField(_("Notes"), blank=True)
    collected_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='collected_payments', verbose_name=_("Collected By")
    )
    is_receipt_generated = models.BooleanField(_("Receipt Generated"), default=False)

    class Meta:
        db_table = 'payments'
        verbose_name = _("Payment")
        verbose_name_plural = _("Payments")
        ordering = ['-payment_date', '-created_at']

    def __str__(self):
        return f"{self.payment_number} - {self.amount}"


# =============================================================================
# Due Settlement Model
# =============================================================================
class DueSettlement(AppendOnlyModel):
    """
    A settlement recorded against a bill's outstanding amount.

    `remaining_amount` is stored as computed at settlement time and can be
    negative when the customer over-settles.
    """
    customer = models.ForeignKey(
        Customer, on_delete=models.PROTECT, related_name='due_settlements', verbose_name=_("Customer")
    )
    bill = models.ForeignKey(
        Bill, on_delete=models.PROTECT, related_name='due_settlements', verbose_name=_("Bill")
    )
    original_amount = models.DecimalField(_("Original Amount"), max_digits=12, decimal_places=2)
    settled_amount = models.DecimalField(
        _("Settled Amount"), max_digits=12, decimal_places=2, validators=[validate_positive_amount]
    )
    remaining_amount = models.DecimalField(_("Remaining Amount"), max_digits=12, decimal_places=2)
    settlement_date = models.DateTimeField(_("Settlement Date"), default=now, db_index=True)
    status = models.CharField(_("Status"), max_length=20, choices=DueSettlementStatus.choices)
    notes = models.TextField(_("Notes"), blank=True)
    settled_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='due_settlements', verbose_name=_("Settled By")
    )

    class Meta:
        db_table = 'due_settlements'
        verbose_name = _("Due Settlement")
        verbose_name_plural = _("Due Settlements")
        ordering = ['-settlement_date', '-created_at']

    def __str__(self):
        return f"Settlement {self.settled_amount} on {self.bill_id} ({self.status})"
