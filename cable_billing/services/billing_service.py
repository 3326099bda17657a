# cable_billing/services/billing_service.py

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, List, Optional, TypedDict, Union

from django.db import transaction
from django.db.models import QuerySet

from cable_core.enums import BillStatus, TransactionType
from cable_core.exceptions import NotFoundError, BillingValidationError
from cable_core.utils import ZERO, as_datetime, now, parse_uuid, to_decimal
from ..models import Customer, Bill
from . import ledger_service, numbering_service, pricing_service
from .ledger_service import RecordedOperation
from .pricing_service import PlanCharge

logger = logging.getLogger("cable_billing.services.billing")


class BillingPreview(TypedDict):
    customer_id: str
    total_amount: Decimal
    amount_paid: Decimal
    due_amount: Decimal
    due_date: datetime
    customer_balance: Decimal
    plans: List[PlanCharge]


# =============================================================================
# Lookups
# =============================================================================
def get_customer(customer_id, for_update: bool = False) -> Optional[Customer]:
    pk = parse_uuid(customer_id)
    if pk is None:
        return None
    queryset = Customer.objects.select_for_update() if for_update else Customer.objects.all()
    return queryset.filter(pk=pk).first()


def require_customer(customer_id, log_prefix: str, for_update: bool = False) -> Customer:
    customer = get_customer(customer_id, for_update=for_update)
    if customer is None:
        logger.warning(f"{log_prefix} Customer not found.")
        raise NotFoundError(f"Customer '{customer_id}' not found.")
    return customer


def get_bill_by_id(bill_id) -> Optional[Bill]:
    pk = parse_uuid(bill_id)
    if pk is None:
        return None
    return Bill.objects.select_related('customer').prefetch_related('plans').filter(pk=pk).first()


def get_bills_by_customer(customer_id) -> QuerySet:
    pk = parse_uuid(customer_id)
    if pk is None:
        return Bill.objects.none()
    return Bill.objects.filter(customer_id=pk).prefetch_related('plans').order_by('-bill_date', '-created_at')


def _paid_amount(amount_paid) -> Decimal:
    if amount_paid is None:
        return ZERO
    paid = to_decimal(amount_paid)
    if paid < ZERO:
        raise BillingValidationError("Amount paid cannot be negative.")
    return paid


# =============================================================================
# Operations
# =============================================================================
def calculate_billing(
        customer_id,
        plan_ids: Iterable,
        amount_paid=None,
        reference_date: Union[date, datetime, None] = None,
) -> BillingPreview:
    """
    Prices a prospective bill without writing anything.

    `customer_balance` is the customer's balance as it would stand if the
    unpaid part of this bill were added to it.
    """
    log_prefix = f"[CalcBilling][Cust:{customer_id}]"
    customer = require_customer(customer_id, log_prefix)
    reference = as_datetime(reference_date) if reference_date else now()
    pricing = pricing_service.resolve_pricing(plan_ids, reference)
    paid = _paid_amount(amount_paid)
    due_amount = max(ZERO, pricing['total_amount'] - paid)

    return {
        'customer_id': str(customer.pk),
        'total_amount': pricing['total_amount'],
        'amount_paid': paid,
        'due_amount': due_amount,
        'due_date': pricing['due_date'],
        'customer_balance': customer.balance + due_amount,
        'plans': pricing['charges'],
    }


@transaction.atomic
def create_bill(
        customer_id,
        plan_ids: Iterable,
        bill_date: Union[date, datetime, None] = None,
        amount_paid=None,
        notes: str = '',
        generated_by=None,
) -> RecordedOperation:
    """
    Issues a bill for the given plans and records its ledger entry.

    The customer's carry-forward balance is folded into the bill amount and
    the balance is cleared, so it is billed exactly once. The customer's
    billing-cycle dates move to this bill's date and due date.

    Args:
        customer_id: Customer to bill.
        plan_ids: Plans on the bill (duplicates are ignored).
        bill_date: Bill date; defaults to now.
        amount_paid: Amount collected with the bill, recorded on it but not
            counted as a payment.
        notes: Free text stored on the bill and the ledger entry.
        generated_by: Acting staff user, if known.

    Returns:
        RecordedOperation with the new Bill and its BILL_GENERATED entry.

    Raises:
        NotFoundError: Unknown customer or plan.
        BillingValidationError: No plans, or a negative amount paid.
    """
    log_prefix = f"[CreateBill][Cust:{customer_id}]"
    plan_ids = list(plan_ids or [])
    logger.info(f"{log_prefix} Creating bill for plans {plan_ids}.")

    customer = require_customer(customer_id, log_prefix, for_update=True)
    bill_date = as_datetime(bill_date) if bill_date else now()
    pricing = pricing_service.resolve_pricing(plan_ids, bill_date)
    paid = _paid_amount(amount_paid)

    previous_balance = customer.balance
    bill = numbering_service.create_with_unique_number(
        Bill, 'bill_number', numbering_service.bill_prefix(),
        customer=customer,
        bill_date=bill_date,
        due_date=pricing['due_date'],
        amount=previous_balance + pricing['total_amount'],
        previous_balance=previous_balance,
        paid_amount=paid,
        status=BillStatus.PENDING,
        notes=notes or '',
        generated_by=generated_by,
    )
    bill.plans.set(pricing['plans'])

    customer.last_bill_date = bill_date
    customer.next_bill_date = pricing['due_date']
    customer.balance = ZERO
    customer.save(update_fields=['last_bill_date', 'next_bill_date', 'balance', 'updated_at'])

    entry = ledger_service.record_transaction(
        customer, TransactionType.BILL_GENERATED, bill.amount,
        f"Bill {bill.bill_number} generated - Amount: {bill.amount}",
        bill,
        amount_paid=paid,
        due_amount=bill.amount - paid,
        notes=notes,
        performed_by=generated_by,
    )
    logger.info(
        f"{log_prefix} Bill {bill.bill_number} created. Amount:{bill.amount} "
        f"(carried:{previous_balance}) Due:{bill.due_date:%Y-%m-%d}"
    )
    return RecordedOperation(bill, entry)


@transaction.atomic
def confirm_physical_bill(bill_id) -> Bill:
    """
    Marks a bill COMPLETED once its printed copy has been produced.
    No ledger entry is written.
    """
    log_prefix = f"[ConfirmBill][Bill:{bill_id}]"
    pk = parse_uuid(bill_id)
    bill = Bill.objects.select_for_update().filter(pk=pk).first() if pk else None
    if bill is None:
        logger.warning(f"{log_prefix} Bill not found.")
        raise NotFoundError(f"Bill '{bill_id}' not found.")

    previous_status = bill.status
    bill.save(update_fields=bill.confirm_physical_bill())
    logger.info(f"{log_prefix} Bill {bill.bill_number} '{previous_status}'->'{bill.status}'. Physical copy confirmed.")
    return bill
