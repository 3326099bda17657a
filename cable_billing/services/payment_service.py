# cable_billing/services/payment_service.py

import logging
from datetime import date, datetime
from typing import Optional, Union

from django.db import transaction
from django.db.models import Sum, QuerySet

from cable_core.enums import PaymentSource, PaymentStatus, TransactionType
from cable_core.exceptions import NotFoundError, BillingValidationError
from cable_core.utils import ZERO, as_datetime, now, parse_uuid, to_decimal
from ..models import Bill, Customer, Payment
from . import ledger_service, numbering_service
from .billing_service import require_customer
from .ledger_service import RecordedOperation

logger = logging.getLogger("cable_billing.services.payment")


def get_payment_by_id(payment_id) -> Optional[Payment]:
    pk = parse_uuid(payment_id)
    if pk is None:
        return None
    return Payment.objects.select_related('customer', 'bill').filter(pk=pk).first()


def get_payments_by_customer(customer_id) -> QuerySet:
    pk = parse_uuid(customer_id)
    if pk is None:
        return Payment.objects.none()
    return Payment.objects.filter(customer_id=pk).select_related('bill').order_by('-payment_date', '-created_at')


def lock_customer_bill(customer: Customer, bill_id, log_prefix: str) -> Bill:
    """
    Loads one of the customer's bills and locks its row until the surrounding
    transaction ends. Payments and settlements aggregate per bill under this lock.
    """
    pk = parse_uuid(bill_id)
    bill = Bill.objects.select_for_update().filter(pk=pk, customer=customer).first() if pk else None
    if bill is None:
        logger.warning(f"{log_prefix} Bill {bill_id} not found for customer.")
        raise NotFoundError(f"Bill '{bill_id}' not found for this customer.")
    return bill


@transaction.atomic
def create_payment(
        customer_id,
        amount,
        payment_method: str,
        payment_source: str = PaymentSource.OFFICE,
        bill_id=None,
        notes: str = '',
        collected_by=None,
        payment_date: Union[date, datetime, None] = None,
) -> RecordedOperation:
    """
    Records a payment, applies it to a bill when one is given, and writes
    its PAYMENT_RECEIVED ledger entry.

    With a bill, the bill's paid amount becomes the sum of all its completed
    payments including this one; the bill turns PAID when that covers its
    amount and PARTIAL otherwise.

    Raises:
        NotFoundError: Unknown customer, or the bill is not this customer's.
        BillingValidationError: Non-positive amount.
    """
    log_prefix = f"[CreatePayment][Cust:{customer_id}]"
    customer = require_customer(customer_id, log_prefix)

    amount = to_decimal(amount)
    if amount <= ZERO:
        raise BillingValidationError("Payment amount must be positive.")

    bill = lock_customer_bill(customer, bill_id, log_prefix) if bill_id is not None else None

    payment = numbering_service.create_with_unique_number(
        Payment, 'payment_number', numbering_service.payment_prefix(),
        customer=customer,
        bill=bill,
        amount=amount,
        payment_method=payment_method,
        payment_source=payment_source,
        payment_date=as_datetime(payment_date) if payment_date else now(),
        status=PaymentStatus.COMPLETED,
        notes=notes or '',
        collected_by=collected_by,
    )

    if bill is not None:
        earlier_total = bill.payments.filter(status=PaymentStatus.COMPLETED).exclude(pk=payment.pk).aggregate(
            total=Sum('amount', default=ZERO)
        )['total']
        bill.save(update_fields=bill.apply_payment_total(earlier_total + amount, now()))

    description = f"Payment {payment.payment_number} received - Amount: {amount}"
    if bill is not None:
        description += f" against bill {bill.bill_number}"
    entry = ledger_service.record_transaction(
        customer, TransactionType.PAYMENT_RECEIVED, amount, description, payment,
        notes=notes, performed_by=collected_by,
    )
    if bill is not None:
        logger.info(
            f"{log_prefix} Payment {payment.payment_number} of {amount} applied to {bill.bill_number}. "
            f"Status:{bill.status} Paid:{bill.paid_amount}"
        )
    else:
        logger.info(f"{log_prefix} Unattached payment {payment.payment_number} of {amount} recorded.")
    return RecordedOperation(payment, entry)
