# cable_billing/services/numbering_service.py

import logging
import random
import time
from typing import Type

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction, IntegrityError, models

from cable_core.exceptions import ConflictError, BillingValidationError

logger = logging.getLogger("cable_billing.services.numbering")

DEFAULT_MAX_ATTEMPTS = 5


def bill_prefix() -> str:
    return getattr(settings, 'BILLING_BILL_NUMBER_PREFIX', 'BILL')


def payment_prefix() -> str:
    return getattr(settings, 'BILLING_PAYMENT_NUMBER_PREFIX', 'PAY')


def transaction_prefix() -> str:
    return getattr(settings, 'BILLING_TRANSACTION_NUMBER_PREFIX', 'TXN')


def generate_number(prefix: str) -> str:
    """
    Builds a candidate identifier: prefix, the last 8 digits of the
    millisecond clock, then 3 random digits (zero padded).

    Candidates are not guaranteed unique; callers insert through
    create_with_unique_number().
    """
    millis = str(int(time.time() * 1000))[-8:]
    return f"{prefix}{millis}{random.randint(0, 999):03d}"


def _number_taken(model: Type[models.Model], number_field: str, candidate: str) -> bool:
    # all_objects: soft-deleted rows still hold their number.
    manager = getattr(model, 'all_objects', model._default_manager)
    return manager.filter(**{number_field: candidate}).exists()


def create_with_unique_number(model: Type[models.Model], number_field: str, prefix: str, **fields):
    """
    Inserts a new `model` row with a freshly generated number in `number_field`.

    The insert itself is the uniqueness check. Each attempt runs inside a
    savepoint so a failed insert leaves the caller's transaction usable; when
    the failure is a taken number a new candidate is generated, up to
    BILLING_NUMBER_MAX_ATTEMPTS times.

    Args:
        model: Model class to create.
        number_field: Name of the unique number column.
        prefix: Identifier prefix (BILL, PAY, TXN).
        **fields: Remaining field values for the new row.

    Returns:
        The saved instance.

    Raises:
        ConflictError: If every attempt collided.
        BillingValidationError: If the row fails model validation.
        IntegrityError: If the insert failed for a reason other than the number.
    """
    max_attempts = getattr(settings, 'BILLING_NUMBER_MAX_ATTEMPTS', DEFAULT_MAX_ATTEMPTS)
    log_prefix = f"[Numbering][{model.__name__}]"

    for attempt in range(1, max_attempts + 1):
        candidate = generate_number(prefix)
        instance = model(**{number_field: candidate}, **fields)
        try:
            with transaction.atomic():
                instance.save()
        except IntegrityError:
            if _number_taken(model, number_field, candidate):
                logger.warning(
                    f"{log_prefix} Insert collided on '{candidate}' (attempt {attempt}/{max_attempts}). Retrying."
                )
                continue
            raise
        except DjangoValidationError as e:
            logger.warning(f"{log_prefix} Rejected by model validation: {e.message_dict}")
            raise BillingValidationError(e.message_dict)
        logger.debug(f"{log_prefix} Assigned '{candidate}' on attempt {attempt}.")
        return instance

    logger.error(f"{log_prefix} Could not allocate a unique {number_field} after {max_attempts} attempts.")
    raise ConflictError(f"Could not allocate a unique {number_field}. Please retry.")
