# cable_billing/models/box.py

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _

from cable_core.enums import BoxActionType
from cable_core.utils import now
from .base import AppendOnlyModel
from .customer import Customer


class BoxActivation(AppendOnlyModel):
    """A service action taken on a customer's set-top box."""
    customer = models.ForeignKey(
        Customer, on_delete=models.PROTECT, related_name='box_activations', verbose_name=_("Customer")
    )
    action_type = models.CharField(_("Action"), max_length=20, choices=BoxActionType.choices)
    action_date = models.DateTimeField(_("Action Date"), default=now, db_index=True)
    reason = models.CharField(_("Reason"), max_length=255, blank=True)
    notes = models.TextField(_("Notes"), blank=True)
    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='box_activations', verbose_name=_("Performed By")
    )

    class Meta:
        db_table = 'box_activations'
        verbose_name = _("Box Activation")
        verbose_name_plural = _("Box Activations")
        ordering = ['-action_date', '-created_at']

    def __str__(self):
        return f"{self.get_action_type_display()} - {self.customer_id} @ {self.action_date:%Y-%m-%d %H:%M}"
