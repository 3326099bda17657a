import uuid
from datetime import date, datetime
from decimal import Decimal

import pytest

from cable_core.enums import BillStatus, TransactionType
from cable_core.exceptions import BillingValidationError, ConflictError, NotFoundError
from cable_billing.models import Bill, Transaction
from cable_billing.services import billing_service, ledger_service


@pytest.fixture
def bundle(make_plan):
    return [make_plan('100', months=1), make_plan('200', months=3, discounted_price='150')]


# ============================================================================
# create_bill
# ============================================================================
@pytest.mark.django_db
class TestCreateBill:
    def test_bundle_bill_amount_dates_and_ledger_entry(self, customer, bundle, staff_user):
        bill, entry = billing_service.create_bill(
            customer.pk, [plan.pk for plan in bundle], bill_date=date(2023, 1, 1), generated_by=staff_user
        )

        assert bill.amount == Decimal('550.00')
        assert bill.due_date == datetime(2023, 4, 1)
        assert bill.status == BillStatus.PENDING
        assert bill.paid_amount == Decimal('0.00')
        assert bill.bill_number.startswith('BILL')
        assert set(bill.plans.values_list('pk', flat=True)) == {plan.pk for plan in bundle}

        customer.refresh_from_db()
        assert customer.last_bill_date == datetime(2023, 1, 1)
        assert customer.next_bill_date == datetime(2023, 4, 1)

        assert entry.type == TransactionType.BILL_GENERATED
        assert entry.amount == Decimal('550.00')
        assert entry.amount_paid == Decimal('0.00')
        assert entry.due_amount == Decimal('550.00')
        assert entry.related_bill == bill
        assert entry.performed_by == staff_user
        assert Transaction.objects.filter(related_bill=bill).count() == 1

    def test_amount_paid_is_recorded_and_splits_due(self, customer, bundle):
        bill, entry = billing_service.create_bill(
            customer.pk, [bundle[0].pk], bill_date=date(2023, 1, 1), amount_paid='40'
        )

        assert bill.paid_amount == Decimal('40.00')
        assert bill.status == BillStatus.PENDING
        assert entry.amount_paid == Decimal('40.00')
        assert entry.due_amount == Decimal('60.00')

    def test_carry_forward_balance_is_billed_exactly_once(self, make_customer, make_plan):
        customer = make_customer(balance=Decimal('40.00'))
        plan = make_plan('100')

        first, _ = billing_service.create_bill(customer.pk, [plan.pk], bill_date=date(2023, 1, 1))
        second, _ = billing_service.create_bill(customer.pk, [plan.pk], bill_date=date(2023, 2, 1))

        assert first.amount == Decimal('140.00')
        assert first.previous_balance == Decimal('40.00')
        assert second.amount == Decimal('100.00')
        assert second.previous_balance == Decimal('0.00')
        customer.refresh_from_db()
        assert customer.balance == Decimal('0.00')

    def test_credit_balance_reduces_the_bill(self, make_customer, make_plan):
        customer = make_customer(balance=Decimal('-30.00'))
        plan = make_plan('100')

        bill, entry = billing_service.create_bill(customer.pk, [plan.pk], bill_date=date(2023, 1, 1))

        assert bill.amount == Decimal('70.00')
        assert entry.amount == Decimal('70.00')

    def test_unknown_customer_writes_nothing(self, bundle):
        with pytest.raises(NotFoundError):
            billing_service.create_bill(uuid.uuid4(), [bundle[0].pk], bill_date=date(2023, 1, 1))

        assert Bill.objects.count() == 0
        assert Transaction.objects.count() == 0

    def test_unknown_plan_leaves_customer_untouched(self, customer, bundle):
        with pytest.raises(NotFoundError):
            billing_service.create_bill(customer.pk, [bundle[0].pk, uuid.uuid4()], bill_date=date(2023, 1, 1))

        customer.refresh_from_db()
        assert customer.last_bill_date is None
        assert Bill.objects.count() == 0

    def test_negative_amount_paid_is_rejected(self, customer, bundle):
        with pytest.raises(BillingValidationError):
            billing_service.create_bill(customer.pk, [bundle[0].pk], amount_paid='-5')

    def test_ledger_failure_rolls_back_bill_and_customer(self, monkeypatch, make_customer, bundle):
        customer = make_customer(balance=Decimal('25.00'))

        def failing_record(*args, **kwargs):
            raise ConflictError("ledger unavailable")

        monkeypatch.setattr(ledger_service, 'record_transaction', failing_record)

        with pytest.raises(ConflictError):
            billing_service.create_bill(customer.pk, [bundle[0].pk], bill_date=date(2023, 1, 1))

        assert Bill.objects.count() == 0
        customer.refresh_from_db()
        assert customer.balance == Decimal('25.00')
        assert customer.last_bill_date is None
        assert customer.next_bill_date is None


# ============================================================================
# confirm_physical_bill / calculate_billing / accessors
# ============================================================================
@pytest.mark.django_db
class TestBillFollowUps:
    def test_confirm_marks_completed_without_ledger_entry(self, customer, make_bill):
        bill = make_bill(customer, '160')

        confirmed = billing_service.confirm_physical_bill(bill.pk)

        assert confirmed.status == BillStatus.COMPLETED
        assert confirmed.is_physical_bill_generated is True
        assert Transaction.objects.filter(customer=customer).count() == 1

    def test_confirm_unknown_bill_raises_not_found(self):
        with pytest.raises(NotFoundError):
            billing_service.confirm_physical_bill(uuid.uuid4())

    def test_preview_prices_without_writing(self, make_customer, bundle):
        customer = make_customer(balance=Decimal('20.00'))

        preview = billing_service.calculate_billing(
            customer.pk, [plan.pk for plan in bundle], amount_paid='50', reference_date=date(2023, 1, 1)
        )

        assert preview['total_amount'] == Decimal('550.00')
        assert preview['due_amount'] == Decimal('500.00')
        assert preview['customer_balance'] == Decimal('520.00')
        assert preview['due_date'] == datetime(2023, 4, 1)
        assert len(preview['plans']) == 2
        assert Bill.objects.count() == 0

    def test_preview_due_amount_never_negative(self, customer, bundle):
        preview = billing_service.calculate_billing(customer.pk, [bundle[0].pk], amount_paid='250')

        assert preview['due_amount'] == Decimal('0.00')

    def test_read_accessors(self, customer, make_customer, make_bill):
        older = make_bill(customer, '100', bill_date=date(2023, 1, 1))
        newer = make_bill(customer, '100', bill_date=date(2023, 2, 1))
        make_bill(make_customer(), '100')

        assert billing_service.get_bill_by_id(older.pk) == older
        assert billing_service.get_bill_by_id('garbage') is None
        assert billing_service.get_bill_by_id(uuid.uuid4()) is None
        assert list(billing_service.get_bills_by_customer(customer.pk)) == [newer, older]
        assert billing_service.get_customer('garbage') is None
