# cable_billing/serializers/billing.py

from decimal import Decimal
from typing import Optional

from rest_framework import serializers

from cable_core.utils import ZERO
from ..models import Customer, Plan, Bill, Payment, DueSettlement

# =============================================================================
# Read Serializers
# =============================================================================


class PlanSummarySerializer(serializers.ModelSerializer):
    effective_price = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = Plan
        fields = ['id', 'name', 'price', 'discounted_price', 'effective_price', 'months', 'is_active']
        read_only_fields = fields


class CustomerBillingSerializer(serializers.ModelSerializer):
    """Billing-relevant view of a customer: balance, cycle dates and box state."""
    full_name = serializers.CharField(read_only=True)
    box_status_display = serializers.CharField(source='get_box_status_display', read_only=True)

    class Meta:
        model = Customer
        fields = [
            'id',
            'account_no',
            'customer_number',
            'full_name',
            'phone',
            'balance',
            'last_bill_date',
            'next_bill_date',
            'box_status',
            'box_status_display',
            'box_activated_at',
            'last_box_status_changed_at',
        ]
        read_only_fields = fields


class BillSerializer(serializers.ModelSerializer):
    plans = PlanSummarySerializer(many=True, read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    due_amount = serializers.SerializerMethodField()

    class Meta:
        model = Bill
        fields = [
            'id',
            'bill_number',
            'customer',
            'plans',
            'bill_date',
            'due_date',
            'amount',
            'previous_balance',
            'paid_amount',
            'due_amount',
            'paid_at',
            'status',
            'status_display',
            'is_physical_bill_generated',
            'notes',
            'generated_by',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_due_amount(self, obj: Bill) -> Decimal:
        return max(obj.amount - obj.paid_amount, ZERO)


class PaymentSerializer(serializers.ModelSerializer):
    bill_number = serializers.SerializerMethodField()

    class Meta:
        model = Payment
        fields = [
            'id',
            'payment_number',
            'customer',
            'bill',
            'bill_number',
            'amount',
            'payment_method',
            'payment_source',
            'payment_date',
            'status',
            'notes',
            'collected_by',
            'is_receipt_generated',
            'created_at',
        ]
        read_only_fields = fields

    def get_bill_number(self, obj: Payment) -> Optional[str]:
        return obj.bill.bill_number if obj.bill_id else None


class DueSettlementSerializer(serializers.ModelSerializer):
    bill_number = serializers.CharField(source='bill.bill_number', read_only=True)

    class Meta:
        model = DueSettlement
        fields = [
            'id',
            'customer',
            'bill',
            'bill_number',
            'original_amount',
            'settled_amount',
            'remaining_amount',
            'settlement_date',
            'status',
            'notes',
            'settled_by',
            'created_at',
        ]
        read_only_fields = fields


# =============================================================================
# Billing Preview
# =============================================================================
class PlanChargeSerializer(serializers.Serializer):
    plan_id = serializers.CharField(read_only=True)
    name = serializers.CharField(read_only=True)
    price = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    discounted_price = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True, allow_null=True)
    effective_price = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    months = serializers.IntegerField(read_only=True)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)


class BillingPreviewSerializer(serializers.Serializer):
    """Serializes the dict returned by billing_service.calculate_billing()."""
    customer_id = serializers.CharField(read_only=True)
    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    amount_paid = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    due_amount = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    due_date = serializers.DateTimeField(read_only=True)
    customer_balance = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    plans = PlanChargeSerializer(many=True, read_only=True)
