# cable_billing/services/settlement_service.py

import logging
from typing import Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import Sum, QuerySet

from cable_core.enums import DueSettlementStatus, TransactionType
from cable_core.exceptions import BillingValidationError
from cable_core.utils import ZERO, now, parse_uuid, to_decimal
from ..models import DueSettlement
from . import ledger_service
from .billing_service import require_customer
from .ledger_service import RecordedOperation
from .payment_service import lock_customer_bill

logger = logging.getLogger("cable_billing.services.settlement")


def get_due_settlement_by_id(settlement_id) -> Optional[DueSettlement]:
    pk = parse_uuid(settlement_id)
    if pk is None:
        return None
    return DueSettlement.objects.select_related('customer', 'bill').filter(pk=pk).first()


def get_due_settlements_by_customer(customer_id) -> QuerySet:
    pk = parse_uuid(customer_id)
    if pk is None:
        return DueSettlement.objects.none()
    return DueSettlement.objects.filter(customer_id=pk).select_related('bill').order_by(
        '-settlement_date', '-created_at'
    )


@transaction.atomic
def create_due_settlement(
        customer_id,
        bill_id,
        settled_amount,
        notes: str = '',
        settled_by=None,
) -> RecordedOperation:
    """
    Settles part or all of a bill's outstanding amount.

    remaining = bill amount - earlier settlements - this settlement. It may go
    negative; anything at or below zero settles the bill.

    Raises:
        NotFoundError: Unknown customer, or the bill is not this customer's.
        BillingValidationError: Non-positive settled amount, or a value the
            model rejects.
    """
    log_prefix = f"[DueSettlement][Cust:{customer_id}][Bill:{bill_id}]"
    customer = require_customer(customer_id, log_prefix)
    bill = lock_customer_bill(customer, bill_id, log_prefix)

    settled_amount = to_decimal(settled_amount)
    if settled_amount <= ZERO:
        raise BillingValidationError("Settled amount must be positive.")

    prior_settled = bill.due_settlements.aggregate(total=Sum('settled_amount', default=ZERO))['total']
    remaining = bill.amount - prior_settled - settled_amount
    fully_settled = remaining <= ZERO

    settlement = DueSettlement(
        customer=customer,
        bill=bill,
        original_amount=bill.amount,
        settled_amount=settled_amount,
        remaining_amount=remaining,
        settlement_date=now(),
        status=DueSettlementStatus.SETTLED if fully_settled else DueSettlementStatus.PARTIAL,
        notes=notes or '',
        settled_by=settled_by,
    )
    try:
        settlement.save()
    except DjangoValidationError as e:
        logger.warning(f"{log_prefix} Settlement rejected by model validation: {e.message_dict}")
        raise BillingValidationError(e.message_dict)

    if fully_settled:
        bill.save(update_fields=bill.mark_settled())

    entry = ledger_service.record_transaction(
        customer, TransactionType.DUE_SETTLED, settled_amount,
        f"Due settled on bill {bill.bill_number} - Amount: {settled_amount}, Remaining: {remaining}",
        settlement,
        notes=notes, performed_by=settled_by,
    )
    logger.info(
        f"{log_prefix} Settled {settled_amount} (prior {prior_settled}). Remaining:{remaining} "
        f"Status:{settlement.status}"
    )
    return RecordedOperation(settlement, entry)
