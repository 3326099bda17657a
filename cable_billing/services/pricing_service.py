# cable_billing/services/pricing_service.py

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, List, TypedDict, Union

from cable_core.exceptions import NotFoundError, BillingValidationError
from cable_core.utils import ZERO, add_months, parse_uuid, round_decimal
from ..models import Plan

logger = logging.getLogger("cable_billing.services.pricing")


# =============================================================================
# Type Definitions
# =============================================================================
class PlanCharge(TypedDict):
    plan_id: str
    name: str
    price: Decimal
    discounted_price: Union[Decimal, None]
    effective_price: Decimal
    months: int
    amount: Decimal


class PricingResult(TypedDict):
    plans: List[Plan]
    charges: List[PlanCharge]
    total_amount: Decimal
    max_duration: int
    due_date: datetime


# =============================================================================
# Pricing
# =============================================================================
def effective_price(plan: Plan) -> Decimal:
    return plan.effective_price


def plan_amount(plan: Plan) -> Decimal:
    return round_decimal(effective_price(plan) * plan.months)


def _normalize_plan_ids(plan_ids: Iterable) -> list:
    unique_ids = []
    for raw_id in plan_ids:
        parsed = parse_uuid(raw_id)
        if parsed is None:
            raise NotFoundError(f"Plan '{raw_id}' not found.")
        if parsed not in unique_ids:
            unique_ids.append(parsed)
    return unique_ids


def resolve_pricing(plan_ids: Iterable, reference_date: Union[date, datetime]) -> PricingResult:
    """
    Resolves the charge for a set of plans.

    Each plan costs its effective price (discounted price when set) times its
    duration in months. The due date is `reference_date` plus the longest plan
    duration in calendar months.

    Raises:
        BillingValidationError: If no plan ids are given.
        NotFoundError: If any id does not resolve to a plan.
    """
    unique_ids = _normalize_plan_ids(plan_ids or [])
    if not unique_ids:
        raise BillingValidationError("At least one plan is required.")

    plans_by_id = {plan.pk: plan for plan in Plan.objects.filter(pk__in=unique_ids)}
    missing = [str(plan_id) for plan_id in unique_ids if plan_id not in plans_by_id]
    if missing:
        logger.warning(f"[Pricing] Unknown plan ids: {', '.join(missing)}")
        raise NotFoundError(f"Plan(s) not found: {', '.join(missing)}.")

    plans = [plans_by_id[plan_id] for plan_id in unique_ids]
    charges: List[PlanCharge] = []
    total_amount = ZERO
    max_duration = 0
    for plan in plans:
        amount = plan_amount(plan)
        charges.append({
            'plan_id': str(plan.pk),
            'name': plan.name,
            'price': plan.price,
            'discounted_price': plan.discounted_price,
            'effective_price': effective_price(plan),
            'months': plan.months,
            'amount': amount,
        })
        total_amount += amount
        max_duration = max(max_duration, plan.months)

    return {
        'plans': plans,
        'charges': charges,
        'total_amount': total_amount,
        'max_duration': max_duration,
        'due_date': add_months(reference_date, max_duration),
    }
