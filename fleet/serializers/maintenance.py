from rest_framework import serializers

from fleet.core.constants import MAINTENANCE_CATEGORY_CHOICES, TIRE_POSITION_CHOICES
from fleet.core.types import MaintenanceRequest, TireDetails
from fleet.models import MaintenanceRecord, TireChange, Vehicle


class TireChangeSerializer(serializers.ModelSerializer):
    class Meta:
        model = TireChange
        fields = ['id', 'date', 'brand', 'model', 'km', 'positions']


class MaintenanceRecordSerializer(serializers.ModelSerializer):
    vehicle_plate = serializers.CharField(source='vehicle.plate', read_only=True)
    is_open = serializers.BooleanField(read_only=True)
    tire_changes = TireChangeSerializer(many=True, read_only=True)

    class Meta:
        model = MaintenanceRecord
        fields = '__all__'
        read_only_fields = [f.name for f in MaintenanceRecord._meta.fields]


class TireDetailsSerializer(serializers.Serializer):
    brand = serializers.CharField(required=False, allow_blank=True, default='')
    model = serializers.CharField(required=False, allow_blank=True, default='')
    positions = serializers.ListField(
        child=serializers.ChoiceField(choices=TIRE_POSITION_CHOICES), required=False, default=list
    )


class OpenMaintenanceSerializer(serializers.Serializer):
    vehicle = serializers.PrimaryKeyRelatedField(queryset=Vehicle.objects.all())
    date = serializers.DateField()
    km = serializers.IntegerField(min_value=0, help_text="Odometer reading at entry.")
    categories = serializers.ListField(child=serializers.ChoiceField(choices=MAINTENANCE_CATEGORY_CHOICES))
    service_type = serializers.CharField(
        required=False, allow_blank=True, default='',
        help_text="Description of the service; required when 'other' is selected."
    )
    cost = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, default=0)
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    tires = TireDetailsSerializer(required=False, allow_null=True, default=None)

    def to_request(self):
        data = dict(self.validated_data)
        data.pop('vehicle')
        tires = data.pop('tires')
        return MaintenanceRequest(tires=TireDetails(**tires) if tires else None, **data)


class ResolveMaintenanceSerializer(serializers.Serializer):
    exit_km = serializers.IntegerField(min_value=0)
    exit_date = serializers.DateTimeField(required=False, allow_null=True, default=None)
    cost = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True, default=None)
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    checklist_completion = serializers.ListField(
        child=serializers.CharField(), required=False, default=list,
        help_text="Categories signed off by the workshop."
    )
