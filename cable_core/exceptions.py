"""
cable_core/exceptions.py

Domain exceptions raised by the billing core.

They subclass DRF's APIException so the (external) request layer can hand them
straight to the framework's exception handler: each carries an HTTP status code,
a default detail message and a machine readable code.
"""

from rest_framework import status
from rest_framework.exceptions import APIException


class BillingError(APIException):
    """
    Base class for every error surfaced by the billing services.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'The billing operation could not be completed.'
    default_code = 'billing_error'


class NotFoundError(BillingError):
    """
    Raised when a customer, plan, bill or payment identifier does not resolve.
    Nothing is persisted when this is raised from a mutating operation.
    """
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'The requested record was not found.'
    default_code = 'not_found'


class ConflictError(BillingError):
    """
    Raised when a generated number still collides after all retries, or when a
    ledger back-reference is already taken. The caller may resubmit.
    """
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'The operation conflicted with existing records. Please retry.'
    default_code = 'conflict'


class ImmutableRecordError(ConflictError):
    """
    Raised when code attempts to update an append-only record
    (ledger transactions, payments, settlements, box actions).
    """
    default_detail = 'This record is append-only and cannot be modified.'
    default_code = 'immutable_record'


class BillingValidationError(BillingError):
    """
    Last-line guard for inputs the core cannot work with (empty plan set,
    non-positive amounts, unknown action types). Field validation proper is the
    request layer's job.
    """
    default_detail = 'Invalid input for billing operation.'
    default_code = 'invalid'
