import uuid
from decimal import Decimal

import pytest

from cable_core.enums import BillStatus, PaymentMethod, PaymentSource, PaymentStatus, TransactionType
from cable_core.exceptions import BillingValidationError, ConflictError, ImmutableRecordError, NotFoundError
from cable_billing.models import Payment, Transaction
from cable_billing.services import billing_service, ledger_service, payment_service, settlement_service


@pytest.mark.django_db
class TestCreatePayment:
    def test_two_payments_move_bill_from_partial_to_paid(self, customer, make_bill, staff_user):
        bill = make_bill(customer, '160')

        payment_service.create_payment(customer.pk, '100', PaymentMethod.CASH, bill_id=bill.pk)
        bill.refresh_from_db()
        assert bill.status == BillStatus.PARTIAL
        assert bill.paid_amount == Decimal('100.00')
        assert bill.paid_at is None

        payment, entry = payment_service.create_payment(
            customer.pk, '60', PaymentMethod.UPI, payment_source=PaymentSource.FIELD,
            bill_id=bill.pk, collected_by=staff_user,
        )
        bill.refresh_from_db()
        assert bill.status == BillStatus.PAID
        assert bill.paid_amount == Decimal('160.00')
        assert bill.paid_at is not None

        assert payment.status == PaymentStatus.COMPLETED
        assert payment.payment_number.startswith('PAY')
        assert entry.type == TransactionType.PAYMENT_RECEIVED
        assert entry.amount == Decimal('60.00')
        assert entry.related_payment == payment
        assert entry.performed_by == staff_user

    def test_paid_at_is_stamped_only_on_first_transition(self, customer, make_bill):
        bill = make_bill(customer, '160')
        payment_service.create_payment(customer.pk, '160', PaymentMethod.CASH, bill_id=bill.pk)
        bill.refresh_from_db()
        first_paid_at = bill.paid_at

        payment_service.create_payment(customer.pk, '10', PaymentMethod.CASH, bill_id=bill.pk)
        bill.refresh_from_db()

        assert bill.paid_amount == Decimal('170.00')
        assert bill.status == BillStatus.PAID
        assert bill.paid_at == first_paid_at

    def test_short_payment_keeps_a_settled_bill_settled(self, customer, make_bill):
        bill = make_bill(customer, '160')
        settlement_service.create_due_settlement(customer.pk, bill.pk, '160')

        payment_service.create_payment(customer.pk, '10', PaymentMethod.CASH, bill_id=bill.pk)
        bill.refresh_from_db()

        assert bill.status == BillStatus.SETTLED
        assert bill.paid_amount == Decimal('10.00')
        assert ledger_service.find_ledger_issues(customer_id=customer.pk) == []

    def test_short_payment_keeps_a_completed_bill_completed(self, customer, make_bill):
        bill = make_bill(customer, '160')
        billing_service.confirm_physical_bill(bill.pk)

        payment_service.create_payment(customer.pk, '10', PaymentMethod.CASH, bill_id=bill.pk)
        bill.refresh_from_db()

        assert bill.status == BillStatus.COMPLETED
        assert bill.paid_amount == Decimal('10.00')

    def test_covering_payment_moves_a_settled_bill_to_paid(self, customer, make_bill):
        bill = make_bill(customer, '160')
        settlement_service.create_due_settlement(customer.pk, bill.pk, '160')

        payment_service.create_payment(customer.pk, '160', PaymentMethod.CASH, bill_id=bill.pk)
        bill.refresh_from_db()

        assert bill.status == BillStatus.PAID
        assert bill.paid_at is not None

    def test_unattached_payment_still_gets_a_ledger_entry(self, customer):
        payment, entry = payment_service.create_payment(customer.pk, '75', PaymentMethod.CARD)

        assert payment.bill is None
        assert entry.related_payment == payment
        assert entry.related_bill is None

    def test_bill_of_another_customer_is_not_found(self, customer, make_customer, make_bill):
        other_bill = make_bill(make_customer(), '160')

        with pytest.raises(NotFoundError):
            payment_service.create_payment(customer.pk, '100', PaymentMethod.CASH, bill_id=other_bill.pk)

        assert Payment.objects.count() == 0
        other_bill.refresh_from_db()
        assert other_bill.paid_amount == Decimal('0.00')

    def test_unknown_customer_is_not_found(self):
        with pytest.raises(NotFoundError):
            payment_service.create_payment(uuid.uuid4(), '100', PaymentMethod.CASH)

    @pytest.mark.parametrize('amount', ['0', '-10'])
    def test_non_positive_amount_is_rejected(self, customer, amount):
        with pytest.raises(BillingValidationError):
            payment_service.create_payment(customer.pk, amount, PaymentMethod.CASH)

        assert Transaction.objects.count() == 0

    def test_ledger_failure_rolls_back_payment_and_bill(self, customer, make_bill, monkeypatch):
        bill = make_bill(customer, '160')

        def failing_record(*args, **kwargs):
            raise ConflictError("ledger unavailable")
        monkeypatch.setattr(ledger_service, 'record_transaction', failing_record)

        with pytest.raises(ConflictError):
            payment_service.create_payment(customer.pk, '160', PaymentMethod.CASH, bill_id=bill.pk)

        assert Payment.objects.count() == 0
        bill.refresh_from_db()
        assert bill.paid_amount == Decimal('0.00')
        assert bill.status == BillStatus.PENDING
        assert bill.paid_at is None

    def test_payments_are_append_only(self, customer):
        payment, _ = payment_service.create_payment(customer.pk, '75', PaymentMethod.CASH)
        payment.amount = Decimal('1.00')

        with pytest.raises(ImmutableRecordError):
            payment.save()

        payment.refresh_from_db()
        assert payment.amount == Decimal('75.00')

    def test_accessors_order_newest_first(self, customer):
        first, _ = payment_service.create_payment(customer.pk, '10', PaymentMethod.CASH)
        second, _ = payment_service.create_payment(customer.pk, '20', PaymentMethod.CASH)

        assert payment_service.get_payment_by_id(first.pk) == first
        assert payment_service.get_payment_by_id('nope') is None
        assert list(payment_service.get_payments_by_customer(customer.pk)) == [second, first]
