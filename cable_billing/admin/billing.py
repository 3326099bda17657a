# cable_billing/admin/billing.py

import logging

from django.contrib import admin, messages
from django.utils.translation import gettext_lazy as _
from simple_history.admin import SimpleHistoryAdmin

from cable_core.enums import BillStatus
from cable_core.exceptions import BillingError
from ..models import Customer, Plan, Bill, Payment, DueSettlement
from ..services import billing_service
from .base import DeletionStatusListFilter, ReadOnlyAdminMixin, SoftDeleteAdminMixin

logger = logging.getLogger("cable_billing.admin.billing")

# Fields the billing services own on a customer.
CUSTOMER_BILLING_FIELDS = (
    'balance', 'last_bill_date', 'next_bill_date',
    'box_status', 'box_activated_at', 'last_box_status_changed_at',
)


# =============================================================================
# Customer / Plan Admin
# =============================================================================
@admin.register(Customer)
class CustomerAdmin(SoftDeleteAdminMixin, SimpleHistoryAdmin):
    list_display = ('account_no', 'customer_number', 'full_name', 'phone', 'balance', 'box_status', 'next_bill_date')
    list_filter = (DeletionStatusListFilter, 'box_status', 'city')
    search_fields = ('account_no', 'customer_number', 'first_name', 'last_name', 'phone', 'vc_number')
    ordering = ('account_no',)
    readonly_fields = CUSTOMER_BILLING_FIELDS + ('created_at', 'updated_at', 'deleted')
    fieldsets = (
        (_('Identity'), {'fields': ('account_no', 'customer_number', 'first_name', 'last_name', 'phone', 'email')}),
        (_('Address'), {'fields': ('address', 'city', 'state', 'zip_code')}),
        (_('Equipment'), {'fields': ('serial_number', 'vc_number')}),
        (_('Billing'), {'fields': CUSTOMER_BILLING_FIELDS}),
        (_('Other'), {'fields': ('notes', 'created_at', 'updated_at', 'deleted')}),
    )


@admin.register(Plan)
class PlanAdmin(SoftDeleteAdminMixin, admin.ModelAdmin):
    list_display = ('name', 'price', 'discounted_price', 'months', 'is_active')
    list_filter = (DeletionStatusListFilter, 'is_active', 'months')
    search_fields = ('name',)
    ordering = ('name',)
    readonly_fields = ('created_at', 'updated_at', 'deleted')


# =============================================================================
# Bill Admin
# =============================================================================
class PaymentInline(ReadOnlyAdminMixin, admin.TabularInline):
    model = Payment
    fields = ('payment_number', 'amount', 'payment_method', 'payment_date', 'status')
    readonly_fields = fields
    extra = 0
    show_change_link = True


class DueSettlementInline(ReadOnlyAdminMixin, admin.TabularInline):
    model = DueSettlement
    fields = ('settled_amount', 'remaining_amount', 'settlement_date', 'status')
    readonly_fields = fields
    extra = 0


@admin.register(Bill)
class BillAdmin(SimpleHistoryAdmin):
    list_display = ('bill_number', 'customer', 'bill_date', 'due_date', 'amount', 'paid_amount', 'status',
                    'is_physical_bill_generated')
    list_filter = ('status', 'is_physical_bill_generated', 'bill_date')
    search_fields = ('bill_number', 'customer__account_no', 'customer__first_name', 'customer__last_name')
    list_select_related = ('customer',)
    date_hierarchy = 'bill_date'
    inlines = [PaymentInline, DueSettlementInline]
    actions = ['confirm_physical_bills']

    def get_readonly_fields(self, request, obj=None):
        return [field.name for field in self.model._meta.fields] + ['plans']

    def has_add_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    @admin.action(description=_('Confirm physical bill (mark COMPLETED)'))
    def confirm_physical_bills(self, request, queryset):
        confirmed = 0
        for bill in queryset.exclude(status=BillStatus.COMPLETED):
            try:
                billing_service.confirm_physical_bill(bill.pk)
                confirmed += 1
            except BillingError as e:
                logger.warning(f"[Admin] Could not confirm bill {bill.bill_number}: {e}")
                self.message_user(request, _("Bill %(num)s: %(err)s") % {'num': bill.bill_number, 'err': e},
                                  messages.ERROR)
        if confirmed:
            self.message_user(request, _("%(count)d bill(s) confirmed.") % {'count': confirmed}, messages.SUCCESS)


# =============================================================================
# Payment / Settlement Admin (read-only)
# =============================================================================
@admin.register(Payment)
class PaymentAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ('payment_number', 'customer', 'bill', 'amount', 'payment_method', 'payment_source',
                    'payment_date', 'status')
    list_filter = ('payment_method', 'payment_source', 'status')
    search_fields = ('payment_number', 'customer__account_no', 'bill__bill_number')
    list_select_related = ('customer', 'bill')
    date_hierarchy = 'payment_date'


@admin.register(DueSettlement)
class DueSettlementAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ('bill', 'customer', 'original_amount', 'settled_amount', 'remaining_amount',
                    'settlement_date', 'status')
    list_filter = ('status',)
    search_fields = ('bill__bill_number', 'customer__account_no')
    list_select_related = ('customer', 'bill')
