import re
from decimal import Decimal

import pytest

from cable_core.enums import PaymentMethod
from cable_core.exceptions import BillingValidationError, ConflictError
from cable_billing.models import Payment
from cable_billing.services import numbering_service


def _fixed_numbers(monkeypatch, *numbers):
    sequence = iter(numbers)
    monkeypatch.setattr(numbering_service, 'generate_number', lambda prefix: next(sequence))


def test_generated_number_format():
    number = numbering_service.generate_number('BILL')

    assert re.fullmatch(r'BILL\d{11}', number)


def test_prefixes_follow_settings(settings):
    settings.BILLING_PAYMENT_NUMBER_PREFIX = 'RCPT'

    assert numbering_service.payment_prefix() == 'RCPT'
    assert numbering_service.bill_prefix() == 'BILL'


@pytest.mark.django_db
class TestCreateWithUniqueNumber:
    def _create(self, customer, amount='10'):
        return numbering_service.create_with_unique_number(
            Payment, 'payment_number', 'PAY',
            customer=customer, amount=Decimal(amount), payment_method=PaymentMethod.CASH,
        )

    def test_collision_is_retried_with_a_new_number(self, monkeypatch, customer):
        _fixed_numbers(monkeypatch, 'PAY00000001001', 'PAY00000001001', 'PAY00000001002')

        first = self._create(customer)
        second = self._create(customer)

        assert first.payment_number == 'PAY00000001001'
        assert second.payment_number == 'PAY00000001002'
        assert Payment.objects.count() == 2

    def test_exhausted_retries_raise_conflict(self, monkeypatch, settings, customer):
        settings.BILLING_NUMBER_MAX_ATTEMPTS = 3
        _fixed_numbers(monkeypatch, *(['PAY00000002001'] * 4))
        self._create(customer)

        with pytest.raises(ConflictError):
            self._create(customer)

        assert Payment.objects.count() == 1

    def test_model_validation_failure_is_not_retried(self, customer):
        with pytest.raises(BillingValidationError):
            self._create(customer, amount='0')

        assert Payment.objects.count() == 0
