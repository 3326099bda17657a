# cable_billing/models/plan.py

from decimal import Decimal

from django.db import models
from django.utils.translation import gettext_lazy as _

from cable_core.validators import validate_non_negative_amount, validate_plan_months
from .base import BillingBaseModel


class Plan(BillingBaseModel):
    """
    A subscription package. Read-only to the billing core.
    """
    name = models.CharField(_("Name"), max_length=150, unique=True)
    description = models.TextField(_("Description"), blank=True)
    price = models.DecimalField(
        _("Price"), max_digits=12, decimal_places=2, validators=[validate_non_negative_amount],
        help_text=_("List price per month.")
    )
    discounted_price = models.DecimalField(
        _("Discounted Price"), max_digits=12, decimal_places=2, null=True, blank=True,
        validators=[validate_non_negative_amount],
        help_text=_("When set, replaces the list price for billing.")
    )
    months = models.PositiveSmallIntegerField(
        _("Months"), default=1, validators=[validate_plan_months],
        help_text=_("Billing duration covered by one purchase of this plan.")
    )
    is_active = models.BooleanField(_("Active"), default=True)

    class Meta:
        db_table = 'plans'
        verbose_name = _("Plan")
        verbose_name_plural = _("Plans")
        ordering = ['name']

    def __str__(self):
        return self.name

    @property
    def effective_price(self) -> Decimal:
        """Discounted price if set, else the list price."""
        return self.discounted_price if self.discounted_price is not None else self.price
