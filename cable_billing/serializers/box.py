# cable_billing/serializers/box.py

from rest_framework import serializers

from ..models import BoxActivation


class BoxActivationSerializer(serializers.ModelSerializer):
    action_type_display = serializers.CharField(source='get_action_type_display', read_only=True)

    class Meta:
        model = BoxActivation
        fields = [
            'id',
            'customer',
            'action_type',
            'action_type_display',
            'action_date',
            'reason',
            'notes',
            'performed_by',
            'created_at',
        ]
        read_only_fields = fields
