# cable_billing/models/ledger.py

import logging
from functools import reduce
from operator import or_
from typing import Optional

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils.translation import gettext_lazy as _

from cable_core.enums import TransactionType, TransactionStatus
from cable_core.utils import now
from cable_core.validators import validate_non_negative_amount
from .base import AppendOnlyModel
from .billing import Bill, Payment, DueSettlement
from .box import BoxActivation
from .customer import Customer

logger = logging.getLogger("cable_billing.models.ledger")

# Back-reference column per source model. A ledger row populates exactly one.
SOURCE_FIELDS = {
    Bill: 'related_bill',
    Payment: 'related_payment',
    DueSettlement: 'related_due_settlement',
    BoxActivation: 'related_action',
}


def _exactly_one_source() -> Q:
    clauses = []
    for populated in SOURCE_FIELDS.values():
        clause = Q(**{f"{populated}__isnull": False})
        for other in SOURCE_FIELDS.values():
            if other != populated:
                clause &= Q(**{f"{other}__isnull": True})
        clauses.append(clause)
    return reduce(or_, clauses)


class Transaction(AppendOnlyModel):
    """
    Ledger entry. One per bill, payment, due settlement or box action.

    The four `related_*` columns are one-to-one, so a source record can own at
    most one entry; the check constraint makes every entry point at exactly
    one source.
    """
    transaction_number = models.CharField(_("Transaction Number"), max_length=50, unique=True, editable=False)
    customer = models.ForeignKey(
        Customer, on_delete=models.PROTECT, related_name='transactions', verbose_name=_("Customer")
    )
    type = models.CharField(_("Type"), max_length=30, choices=TransactionType.choices, db_index=True)
    amount = models.DecimalField(
        _("Amount"), max_digits=12, decimal_places=2,
        help_text=_("Bill entries may be negative when a credit balance was carried forward.")
    )
    amount_paid = models.DecimalField(
        _("Amount Paid"), max_digits=12, decimal_places=2, null=True, blank=True,
        validators=[validate_non_negative_amount]
    )
    due_amount = models.DecimalField(_("Due Amount"), max_digits=12, decimal_places=2, null=True, blank=True)
    description = models.CharField(_("Description"), max_length=255)
    transaction_date = models.DateTimeField(_("Transaction Date"), default=now, db_index=True)
    status = models.CharField(
        _("Status"), max_length=20, choices=TransactionStatus.choices, default=TransactionStatus.COMPLETED
    )
    notes = models.TextField(_("Notes"), blank=True)
    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='ledger_entries', verbose_name=_("Performed By")
    )

    related_bill = models.OneToOneField(
        Bill, on_delete=models.PROTECT, null=True, blank=True, related_name='ledger_entry'
    )
    related_payment = models.OneToOneField(
        Payment, on_delete=models.PROTECT, null=True, blank=True, related_name='ledger_entry'
    )
    related_due_settlement = models.OneToOneField(
        DueSettlement, on_delete=models.PROTECT, null=True, blank=True, related_name='ledger_entry'
    )
    related_action = models.OneToOneField(
        BoxActivation, on_delete=models.PROTECT, null=True, blank=True, related_name='ledger_entry'
    )

    class Meta:
        db_table = 'transactions'
        verbose_name = _("Ledger Transaction")
        verbose_name_plural = _("Ledger Transactions")
        ordering = ['-transaction_date', '-created_at']
        constraints = [
            models.CheckConstraint(condition=_exactly_one_source(), name='transaction_exactly_one_source'),
        ]

    def __str__(self):
        return f"{self.transaction_number} {self.type} {self.amount}"

    @classmethod
    def source_field_for(cls, source) -> Optional[str]:
        """Name of the back-reference column for a source instance, None if unsupported."""
        return SOURCE_FIELDS.get(type(source))

    @property
    def source(self):
        """The single record this entry was written for."""
        for field_name in SOURCE_FIELDS.values():
            value = getattr(self, field_name)
            if value is not None:
                return value
        return None

    @property
    def source_count(self) -> int:
        return sum(1 for field_name in SOURCE_FIELDS.values() if getattr(self, f"{field_name}_id") is not None)
