import itertools
from datetime import date
from decimal import Decimal

import pytest

from accounts.models import User
from cable_billing.models import Customer, Plan
from cable_billing.services import billing_service


@pytest.fixture
def staff_user(db):
    return User.objects.create_user(email='counter@cableop.test', name='Counter Staff', password='not-used')


@pytest.fixture
def make_customer(db):
    counter = itertools.count(1)

    def _make(**overrides):
        n = next(counter)
        fields = {
            'account_no': f"ACC-{n:04d}",
            'customer_number': f"CUST-{n:04d}",
            'first_name': 'Ravi',
            'last_name': f"Subscriber{n}",
            'phone': f"90000{n:05d}",
        }
        fields.update(overrides)
        return Customer.objects.create(**fields)

    return _make


@pytest.fixture
def customer(make_customer):
    return make_customer()


@pytest.fixture
def make_plan(db):
    counter = itertools.count(1)

    def _make(price, months=1, discounted_price=None, **overrides):
        fields = {
            'name': f"Plan {next(counter)}",
            'price': Decimal(str(price)),
            'discounted_price': Decimal(str(discounted_price)) if discounted_price is not None else None,
            'months': months,
        }
        fields.update(overrides)
        return Plan.objects.create(**fields)

    return _make


@pytest.fixture
def make_bill(make_plan):
    """Bills `customer` for a one-month plan priced at `amount`."""

    def _make(customer, amount, bill_date=date(2023, 1, 1)):
        plan = make_plan(amount)
        return billing_service.create_bill(customer.pk, [plan.pk], bill_date=bill_date).record

    return _make
