# cable_billing/services/box_service.py

import logging
from typing import Dict, Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import QuerySet

from cable_core.enums import BoxActionType, BoxStatus, TransactionType
from cable_core.exceptions import BillingValidationError
from cable_core.utils import ZERO, now, parse_uuid
from ..models import BoxActivation
from . import ledger_service
from .billing_service import require_customer
from .ledger_service import RecordedOperation

logger = logging.getLogger("cable_billing.services.box")

# Action -> resulting box status. Every action is accepted from every status.
BOX_STATUS_TRANSITIONS: Dict[str, str] = {
    BoxActionType.ACTIVATED: BoxStatus.ACTIVE,
    BoxActionType.REACTIVATED: BoxStatus.ACTIVE,
    BoxActionType.SUSPENDED: BoxStatus.SUSPENDED,
    BoxActionType.DEACTIVATED: BoxStatus.INACTIVE,
}


def next_box_status(current_status: str, action_type: str) -> str:
    """Box status after `action_type`; the current status does not restrict the action."""
    try:
        return BOX_STATUS_TRANSITIONS[action_type]
    except KeyError:
        raise BillingValidationError(f"Unknown box action '{action_type}'.")


def get_box_activation_by_id(activation_id) -> Optional[BoxActivation]:
    pk = parse_uuid(activation_id)
    if pk is None:
        return None
    return BoxActivation.objects.select_related('customer').filter(pk=pk).first()


def get_box_activations_by_customer(customer_id) -> QuerySet:
    pk = parse_uuid(customer_id)
    if pk is None:
        return BoxActivation.objects.none()
    return BoxActivation.objects.filter(customer_id=pk).order_by('-action_date', '-created_at')


@transaction.atomic
def create_box_activation(
        customer_id,
        action_type: str,
        reason: str = '',
        notes: str = '',
        performed_by=None,
) -> RecordedOperation:
    """
    Records a box action, moves the customer's box status accordingly and
    writes a zero-amount BOX_<action> ledger entry.

    Raises:
        NotFoundError: Unknown customer.
        BillingValidationError: Unknown action type, or a reason or note the
            model rejects.
    """
    log_prefix = f"[BoxAction][Cust:{customer_id}][{action_type}]"
    customer = require_customer(customer_id, log_prefix, for_update=True)
    previous_status = customer.box_status
    new_status = next_box_status(previous_status, action_type)
    acted_at = now()

    activation = BoxActivation(
        customer=customer,
        action_type=action_type,
        action_date=acted_at,
        reason=reason or '',
        notes=notes or '',
        performed_by=performed_by,
    )
    try:
        activation.save()
    except DjangoValidationError as e:
        logger.warning(f"{log_prefix} Box action rejected by model validation: {e.message_dict}")
        raise BillingValidationError(e.message_dict)

    customer.box_status = new_status
    customer.last_box_status_changed_at = acted_at
    update_fields = ['box_status', 'last_box_status_changed_at', 'updated_at']
    if action_type == BoxActionType.ACTIVATED:
        customer.box_activated_at = acted_at
        update_fields.append('box_activated_at')
    customer.save(update_fields=update_fields)

    entry = ledger_service.record_transaction(
        customer, TransactionType.for_box_action(action_type), ZERO,
        f"Box {str(action_type).lower()} for customer",
        activation,
        notes=notes, performed_by=performed_by,
    )
    logger.info(f"{log_prefix} Box status '{previous_status}'->'{new_status}'.")
    return RecordedOperation(activation, entry)
