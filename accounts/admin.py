from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.db.models import Count

from accounts.models import User


@admin.register(User)
class StaffUserAdmin(BaseUserAdmin):
    """Operator staff. Bills, payments and box actions record the acting user."""
    list_display = ('email', 'name', 'phone', 'role', 'bills_generated', 'payments_collected', 'is_active')
    list_filter = ('role', 'is_active', 'is_staff')
    search_fields = ('email', 'name', 'phone', 'role')
    ordering = ('name',)
    readonly_fields = ('last_login', 'created_at', 'updated_at')

    fieldsets = (
        (None, {'fields': ('email', 'password')}),
        ('Operator', {'fields': ('name', 'phone', 'role')}),
        ('Access', {'fields': ('is_active', 'is_staff', 'is_superuser', 'groups')}),
        ('Activity', {'fields': ('last_login', 'created_at', 'updated_at')}),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'name', 'phone', 'role', 'password1', 'password2'),
        }),
    )
    filter_horizontal = ('groups',)

    def get_queryset(self, request):
        return super().get_queryset(request).annotate(
            bills_count=Count('generated_bills', distinct=True),
            payments_count=Count('collected_payments', distinct=True),
        )

    @admin.display(description='Bills', ordering='bills_count')
    def bills_generated(self, obj):
        return obj.bills_count

    @admin.display(description='Payments', ordering='payments_count')
    def payments_collected(self, obj):
        return obj.payments_count
