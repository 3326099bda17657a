# cable_billing/admin/ledger.py

from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from ..models import BoxActivation, Transaction
from .base import ReadOnlyAdminMixin


@admin.register(BoxActivation)
class BoxActivationAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ('customer', 'action_type', 'action_date', 'reason', 'performed_by')
    list_filter = ('action_type',)
    search_fields = ('customer__account_no', 'reason')
    list_select_related = ('customer', 'performed_by')
    date_hierarchy = 'action_date'


@admin.register(Transaction)
class TransactionAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ('transaction_number', 'customer', 'type', 'amount', 'transaction_date', 'status',
                    'source_display')
    list_filter = ('type', 'status')
    search_fields = ('transaction_number', 'customer__account_no', 'description')
    list_select_related = ('customer', 'related_bill', 'related_payment', 'related_due_settlement',
                           'related_action')
    date_hierarchy = 'transaction_date'

    @admin.display(description=_('Source'))
    def source_display(self, obj: Transaction) -> str:
        source = obj.source
        if source is None:
            return '-'
        return f"{source._meta.verbose_name}: {source}"
