# cable_billing/models/base.py

import uuid
import logging

from django.db import models
from django.utils.translation import gettext_lazy as _

from safedelete.models import SafeDeleteModel
from safedelete.managers import SafeDeleteManager, SafeDeleteAllManager, SafeDeleteDeletedManager
from safedelete.config import SOFT_DELETE, NO_DELETE

from cable_core.exceptions import ImmutableRecordError

logger = logging.getLogger(__name__)

# ============================================================================
# Abstract Base Models
# ============================================================================

class BillingBaseModel(SafeDeleteModel):
    """
    Abstract base model that includes:
    - UUID primary key
    - Soft deletion support (rows are hidden, never physically removed)
    - Created/updated timestamps
    """
    _safedelete_policy = SOFT_DELETE

    id = models.UUIDField(
        primary_key=True, default=uuid.uuid4, editable=False, verbose_name=_("ID")
    )
    created_at = models.DateTimeField(_("Created At"), auto_now_add=True, editable=False)
    updated_at = models.DateTimeField(_("Updated At"), auto_now=True, editable=False)

    objects = SafeDeleteManager()
    all_objects = SafeDeleteAllManager()
    deleted_objects = SafeDeleteDeletedManager()

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        """
        Runs field validation before every full save.

        Uniqueness and constraints are left to the database: the numbering
        service relies on the insert itself failing on a duplicate number, and
        ledger back-references are guarded by their one-to-one columns.
        Partial saves (update_fields) skip validation.
        """
        if not kwargs.get('update_fields'):
            self.full_clean(validate_unique=False, validate_constraints=False)
        super().save(*args, **kwargs)


class AppendOnlyModel(BillingBaseModel):
    """
    Abstract base for records that are written once and never changed:
    ledger transactions, payments, due settlements and box actions.

    Updates raise ImmutableRecordError; delete() is a no-op under the
    NO_DELETE policy.
    """
    _safedelete_policy = NO_DELETE

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        if not self._state.adding:
            logger.error(
                f"Refused update of append-only {self.__class__.__name__} (PK: {self.pk})."
            )
            raise ImmutableRecordError(
                f"{self._meta.verbose_name} records are append-only and cannot be modified."
            )
        super().save(*args, **kwargs)
