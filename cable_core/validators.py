"""
cable_core/validators.py

Reusable field validators for the billing models.
"""

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.utils.translation import gettext_lazy as _


def validate_positive_amount(value):
    """
    Ensures a monetary amount is strictly positive (payments, settlements).
    """
    if value is not None and value <= Decimal('0'):
        raise ValidationError(_("Amount must be positive."), code='non_positive_amount')


def validate_non_negative_amount(value):
    """
    Ensures a monetary amount is zero or more (plan prices, ledger amounts).
    """
    if value is not None and value < Decimal('0'):
        raise ValidationError(_("Amount cannot be negative."), code='negative_amount')


def validate_plan_months(value):
    """
    A plan bills for at least one whole month.
    """
    if value is not None and value < 1:
        raise ValidationError(_("Plan duration must be at least one month."), code='invalid_months')
