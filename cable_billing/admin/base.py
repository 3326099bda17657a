# cable_billing/admin/base.py

import logging
from typing import Any, Dict, List, Optional, Tuple

from django.contrib import admin
from django.db.models.query import QuerySet
from django.http import HttpRequest
from django.utils.translation import gettext_lazy as _

logger = logging.getLogger("cable_billing.admin.base")


# --- Custom List Filter for Soft Deletion Status ---
class DeletionStatusListFilter(admin.SimpleListFilter):
    """Active / Deleted / All filter for soft-deleted customers and plans."""
    title = _('status')
    parameter_name = 'deletion_status'

    def lookups(self, request: HttpRequest, model_admin: admin.ModelAdmin) -> List[Tuple[Optional[str], str]]:
        return [
            (None, _('Active')),
            ('deleted', _('Deleted')),
            ('all', _('All (including deleted)')),
        ]

    def choices(self, changelist) -> List[Dict[str, Any]]:
        yield {
            'selected': self.value() is None,
            'query_string': changelist.get_query_string(remove=[self.parameter_name]),
            'display': _('Active'),
        }
        for lookup, title in self.lookup_choices:
            if lookup is None:
                continue
            yield {
                'selected': self.value() == str(lookup),
                'query_string': changelist.get_query_string({self.parameter_name: lookup}),
                'display': title,
            }

    def queryset(self, request: HttpRequest, queryset: QuerySet) -> QuerySet:
        if self.value() == 'deleted':
            return queryset.filter(deleted__isnull=False)
        if self.value() is None:
            return queryset.filter(deleted__isnull=True)
        return queryset


class SoftDeleteAdminMixin:
    """Lists soft-deleted rows too; DeletionStatusListFilter narrows them."""

    def get_queryset(self, request: HttpRequest) -> QuerySet:
        queryset = self.model.all_objects.all()
        ordering = self.get_ordering(request)
        if ordering:
            queryset = queryset.order_by(*ordering)
        return queryset


class ReadOnlyAdminMixin:
    """
    Admin for rows that only the billing services may write. Everything is
    viewable; nothing can be added, changed or deleted from the admin.
    """

    def has_add_permission(self, request: HttpRequest, obj=None) -> bool:
        return False

    def has_change_permission(self, request: HttpRequest, obj=None) -> bool:
        return False

    def has_delete_permission(self, request: HttpRequest, obj=None) -> bool:
        return False
