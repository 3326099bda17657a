from decimal import Decimal

import pytest

from cable_core.enums import BillStatus, DueSettlementStatus, TransactionType
from cable_core.exceptions import BillingValidationError, ConflictError, NotFoundError
from cable_billing.models import DueSettlement, Transaction
from cable_billing.services import ledger_service, settlement_service


@pytest.mark.django_db
class TestCreateDueSettlement:
    def test_full_settlement_settles_bill(self, customer, make_bill):
        bill = make_bill(customer, '160')

        settlement, entry = settlement_service.create_due_settlement(customer.pk, bill.pk, '160')

        assert settlement.original_amount == Decimal('160.00')
        assert settlement.remaining_amount == Decimal('0.00')
        assert settlement.status == DueSettlementStatus.SETTLED
        bill.refresh_from_db()
        assert bill.status == BillStatus.SETTLED
        assert entry.type == TransactionType.DUE_SETTLED
        assert entry.amount == Decimal('160.00')
        assert entry.related_due_settlement == settlement

    def test_partial_then_final_settlement(self, customer, make_bill):
        bill = make_bill(customer, '160')

        first, _ = settlement_service.create_due_settlement(customer.pk, bill.pk, '100')
        bill.refresh_from_db()
        assert first.status == DueSettlementStatus.PARTIAL
        assert first.remaining_amount == Decimal('60.00')
        assert bill.status == BillStatus.PENDING

        second, _ = settlement_service.create_due_settlement(customer.pk, bill.pk, '60')
        bill.refresh_from_db()
        assert second.status == DueSettlementStatus.SETTLED
        assert second.remaining_amount == Decimal('0.00')
        assert bill.status == BillStatus.SETTLED

    def test_over_settlement_keeps_negative_remaining(self, customer, make_bill):
        bill = make_bill(customer, '160')

        settlement, _ = settlement_service.create_due_settlement(customer.pk, bill.pk, '200')

        assert settlement.remaining_amount == Decimal('-40.00')
        assert settlement.status == DueSettlementStatus.SETTLED
        bill.refresh_from_db()
        assert bill.status == BillStatus.SETTLED

    def test_bill_of_another_customer_is_not_found(self, customer, make_customer, make_bill):
        other_bill = make_bill(make_customer(), '160')

        with pytest.raises(NotFoundError):
            settlement_service.create_due_settlement(customer.pk, other_bill.pk, '50')

        assert DueSettlement.objects.count() == 0

    def test_non_positive_amount_is_rejected(self, customer, make_bill):
        bill = make_bill(customer, '160')

        with pytest.raises(BillingValidationError):
            settlement_service.create_due_settlement(customer.pk, bill.pk, '0')

    def test_amount_beyond_field_precision_is_a_validation_error(self, customer, make_bill):
        bill = make_bill(customer, '160')

        with pytest.raises(BillingValidationError):
            settlement_service.create_due_settlement(customer.pk, bill.pk, '99999999999.00')

        assert DueSettlement.objects.count() == 0
        bill.refresh_from_db()
        assert bill.status == BillStatus.PENDING

    def test_ledger_failure_rolls_back_settlement_and_bill(self, customer, make_bill, monkeypatch):
        bill = make_bill(customer, '160')

        def failing_record(*args, **kwargs):
            raise ConflictError("ledger unavailable")
        monkeypatch.setattr(ledger_service, 'record_transaction', failing_record)

        with pytest.raises(ConflictError):
            settlement_service.create_due_settlement(customer.pk, bill.pk, '160')

        assert DueSettlement.objects.count() == 0
        assert Transaction.objects.filter(type=TransactionType.DUE_SETTLED).count() == 0
        bill.refresh_from_db()
        assert bill.status == BillStatus.PENDING

    def test_accessors(self, customer, make_bill):
        bill = make_bill(customer, '160')
        settlement, _ = settlement_service.create_due_settlement(customer.pk, bill.pk, '50')

        assert settlement_service.get_due_settlement_by_id(settlement.pk) == settlement
        assert settlement_service.get_due_settlement_by_id(None) is None
        assert list(settlement_service.get_due_settlements_by_customer(customer.pk)) == [settlement]
