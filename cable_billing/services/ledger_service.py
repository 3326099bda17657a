# cable_billing/services/ledger_service.py

import logging
from decimal import Decimal
from typing import Any, List, NamedTuple, Optional, TypedDict

from django.db import IntegrityError
from django.db.models import Sum, QuerySet

from cable_core.enums import BillStatus, DueSettlementStatus, PaymentStatus, TransactionType
from cable_core.exceptions import ConflictError, BillingValidationError
from cable_core.utils import ZERO, now, parse_uuid
from ..models import (
    Customer, Bill, Payment, DueSettlement, BoxActivation, Transaction, SOURCE_FIELDS
)
from . import numbering_service

logger = logging.getLogger("cable_billing.services.ledger")


class RecordedOperation(NamedTuple):
    """A source record together with the ledger entry written for it."""
    record: Any
    transaction: Transaction


class LedgerIssue(TypedDict):
    kind: str
    object_type: str
    object_id: str
    detail: str


# =============================================================================
# Writer
# =============================================================================
def record_transaction(
        customer: Customer,
        transaction_type: str,
        amount: Decimal,
        description: str,
        source,
        *,
        amount_paid: Optional[Decimal] = None,
        due_amount: Optional[Decimal] = None,
        notes: str = '',
        performed_by=None,
) -> Transaction:
    """
    Appends the ledger entry for one bill, payment, due settlement or box action.

    Must run inside the caller's atomic block so the entry and its source
    commit or roll back together.

    Raises:
        BillingValidationError: If `source` is not a ledger source record.
        ConflictError: If `source` already has a ledger entry.
    """
    source_field = Transaction.source_field_for(source)
    if source_field is None or source.pk is None:
        raise BillingValidationError(f"Cannot record a ledger entry for {source!r}.")

    log_prefix = f"[Ledger][Cust:{customer.pk}][{transaction_type}]"
    try:
        entry = numbering_service.create_with_unique_number(
            Transaction, 'transaction_number', numbering_service.transaction_prefix(),
            customer=customer,
            type=transaction_type,
            amount=amount,
            amount_paid=amount_paid,
            due_amount=due_amount,
            description=description,
            transaction_date=now(),
            notes=notes or '',
            performed_by=performed_by,
            **{source_field: source},
        )
    except IntegrityError as e:
        logger.error(f"{log_prefix} {source.__class__.__name__} {source.pk} already has a ledger entry: {e}")
        raise ConflictError(
            f"{source._meta.verbose_name} {source.pk} already has a ledger entry."
        ) from e

    logger.info(f"{log_prefix} Recorded {entry.transaction_number} for {amount} ({source_field}={source.pk}).")
    return entry


# =============================================================================
# Read accessors
# =============================================================================
def get_transaction_by_id(transaction_id) -> Optional[Transaction]:
    pk = parse_uuid(transaction_id)
    if pk is None:
        return None
    return Transaction.objects.select_related('customer').filter(pk=pk).first()


def get_transactions_by_customer(customer_id) -> QuerySet:
    pk = parse_uuid(customer_id)
    if pk is None:
        return Transaction.objects.none()
    return Transaction.objects.filter(customer_id=pk).order_by('-transaction_date', '-created_at')


def get_transaction_for_source(source) -> Optional[Transaction]:
    source_field = Transaction.source_field_for(source)
    if source_field is None or source.pk is None:
        return None
    return Transaction.objects.filter(**{source_field: source}).first()


# =============================================================================
# Integrity audit
# =============================================================================
def _issue(kind: str, obj, detail: str) -> LedgerIssue:
    return {
        'kind': kind,
        'object_type': obj.__class__.__name__,
        'object_id': str(obj.pk),
        'detail': detail,
    }


def _expected_box_type(activation: BoxActivation) -> str:
    return TransactionType.for_box_action(activation.action_type)


def find_ledger_issues(customer_id=None) -> List[LedgerIssue]:
    """
    Audits the ledger against its source records without changing anything.

    Reports sources with no ledger entry, entries whose type or amount does not
    match their source, entries not pointing at exactly one source, bills whose
    status disagrees with their completed payments and settlements whose
    remaining amount does not reconcile with the bill.
    """
    issues: List[LedgerIssue] = []
    scope = {}
    if customer_id is not None:
        pk = parse_uuid(customer_id)
        if pk is None:
            return issues
        scope = {'customer_id': pk}

    expected_types = {
        Bill: lambda bill: TransactionType.BILL_GENERATED,
        Payment: lambda payment: TransactionType.PAYMENT_RECEIVED,
        DueSettlement: lambda settlement: TransactionType.DUE_SETTLED,
        BoxActivation: _expected_box_type,
    }
    expected_amounts = {
        Bill: lambda bill: bill.amount,
        Payment: lambda payment: payment.amount,
        DueSettlement: lambda settlement: settlement.settled_amount,
        BoxActivation: lambda activation: ZERO,
    }

    # --- Source -> ledger ---
    for model in SOURCE_FIELDS:
        for source in model.all_objects.filter(**scope).select_related('ledger_entry'):
            entry = getattr(source, 'ledger_entry', None)
            if entry is None:
                issues.append(_issue('missing_entry', source, "No ledger entry references this record."))
                continue
            if entry.type != expected_types[model](source):
                issues.append(_issue(
                    'type_mismatch', source, f"Ledger entry {entry.transaction_number} has type {entry.type}."
                ))
            if entry.amount != expected_amounts[model](source):
                issues.append(_issue(
                    'amount_mismatch', source,
                    f"Ledger entry {entry.transaction_number} amount {entry.amount} != {expected_amounts[model](source)}."
                ))
            if entry.customer_id != source.customer_id:
                issues.append(_issue(
                    'customer_mismatch', source, f"Ledger entry {entry.transaction_number} is on another customer."
                ))

    # --- Ledger -> source ---
    for entry in Transaction.all_objects.filter(**scope):
        if entry.source_count != 1:
            issues.append(_issue(
                'bad_source_count', entry, f"Entry references {entry.source_count} source records."
            ))

    # --- Bill status vs. payments ---
    settled_statuses = (BillStatus.PAID, BillStatus.SETTLED, BillStatus.COMPLETED)
    for bill in Bill.all_objects.filter(**scope):
        total_paid = bill.payments.filter(status=PaymentStatus.COMPLETED).aggregate(
            total=Sum('amount', default=ZERO)
        )['total']
        if total_paid > ZERO and total_paid >= bill.amount and bill.status not in settled_statuses:
            issues.append(_issue(
                'bill_status', bill, f"Paid {total_paid} of {bill.amount} but status is {bill.status}."
            ))

        # Settlements are replayed in creation order.
        running = ZERO
        fully_settled = False
        for settlement in bill.due_settlements.order_by('created_at'):
            running += settlement.settled_amount
            expected_remaining = settlement.original_amount - running
            if settlement.remaining_amount != expected_remaining:
                issues.append(_issue(
                    'settlement_remaining', settlement,
                    f"Remaining {settlement.remaining_amount}, expected {expected_remaining}."
                ))
            expected_status = DueSettlementStatus.SETTLED if expected_remaining <= ZERO else DueSettlementStatus.PARTIAL
            if settlement.status != expected_status:
                issues.append(_issue(
                    'settlement_status', settlement, f"Status {settlement.status}, expected {expected_status}."
                ))
            fully_settled = fully_settled or expected_remaining <= ZERO

        # A later payment may move a settled bill to PAID, never back to an open status.
        if fully_settled and bill.status in (BillStatus.PENDING, BillStatus.PARTIAL):
            issues.append(_issue(
                'bill_status', bill, f"Fully settled but status is {bill.status}."
            ))

    if issues:
        logger.warning(f"[LedgerAudit] Found {len(issues)} issue(s){' for customer ' + str(customer_id) if customer_id else ''}.")
    else:
        logger.info("[LedgerAudit] Ledger consistent.")
    return issues
