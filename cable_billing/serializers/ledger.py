# cable_billing/serializers/ledger.py

from rest_framework import serializers

from ..models import Transaction


class TransactionSerializer(serializers.ModelSerializer):
    """
    Ledger entry as handed to the request layer. Only one of the related_*
    ids is ever non-null.
    """
    type_display = serializers.CharField(source='get_type_display', read_only=True)

    class Meta:
        model = Transaction
        fields = [
            'id',
            'transaction_number',
            'customer',
            'type',
            'type_display',
            'amount',
            'amount_paid',
            'due_amount',
            'description',
            'transaction_date',
            'status',
            'notes',
            'performed_by',
            'related_bill',
            'related_payment',
            'related_due_settlement',
            'related_action',
            'created_at',
        ]
        read_only_fields = fields
