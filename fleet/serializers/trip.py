from rest_framework import serializers

from fleet.core.constants import TRIP_LOG_KIND_CHOICES
from fleet.core.types import TripExpenses
from fleet.models import Trip, TripLogEntry, Vehicle, Driver


class TripLogEntrySerializer(serializers.ModelSerializer):
    class Meta:
        model = TripLogEntry
        fields = ['id', 'kind', 'text', 'author', 'timestamp']


class TripSerializer(serializers.ModelSerializer):
    vehicle_plate = serializers.CharField(source='vehicle.plate', read_only=True)
    driver_name = serializers.CharField(source='driver.name', read_only=True, default=None)
    duration = serializers.FloatField(read_only=True)
    log_entries = TripLogEntrySerializer(many=True, read_only=True)

    class Meta:
        model = Trip
        fields = '__all__'
        read_only_fields = [f.name for f in Trip._meta.fields]


class ScheduleSerializer(serializers.ModelSerializer):
    """Input and output shape of a scheduled trip."""
    driver = serializers.PrimaryKeyRelatedField(queryset=Driver.objects.all())
    vehicle = serializers.PrimaryKeyRelatedField(queryset=Vehicle.objects.all())
    scheduled_date = serializers.DateField()
    vehicle_plate = serializers.CharField(source='vehicle.plate', read_only=True)
    driver_name = serializers.CharField(source='driver.name', read_only=True, default=None)

    class Meta:
        model = Trip
        fields = [
            'id', 'phase', 'driver', 'driver_name', 'vehicle', 'vehicle_plate',
            'scheduled_date', 'origin', 'destination', 'waypoints',
            'city', 'state', 'zip_code', 'notes', 'created_at', 'updated_at',
        ]
        read_only_fields = ['phase', 'created_at', 'updated_at']

    def to_schedule_data(self):
        data = dict(self.validated_data)
        if 'driver' in data:
            data['driver_id'] = data.pop('driver').id
        if 'vehicle' in data:
            data['vehicle_id'] = data.pop('vehicle').id
        return data


class ChecklistSerializer(serializers.Serializer):
    km = serializers.IntegerField(min_value=0, help_text="Odometer reading at departure.")
    fuel_level = serializers.IntegerField(min_value=0, max_value=100, default=100, help_text="Fuel level in percent.")
    oil_checked = serializers.BooleanField(default=False)
    water_checked = serializers.BooleanField(default=False)
    tires_checked = serializers.BooleanField(default=False)
    comments = serializers.CharField(required=False, allow_blank=True, default='')
    timestamp = serializers.DateTimeField(required=False, allow_null=True, default=None)


class StartScheduledTripSerializer(serializers.Serializer):
    checklist = ChecklistSerializer()


class StartTripSerializer(serializers.Serializer):
    """Immediate departure without a prior schedule."""
    driver = serializers.PrimaryKeyRelatedField(queryset=Driver.objects.all())
    vehicle = serializers.PrimaryKeyRelatedField(queryset=Vehicle.objects.all())
    origin = serializers.CharField(required=False, allow_blank=True, default='')
    destination = serializers.CharField()
    waypoints = serializers.ListField(child=serializers.CharField(), required=False, default=list)
    city = serializers.CharField(required=False, allow_blank=True, default='')
    state = serializers.CharField(required=False, allow_blank=True, default='')
    zip_code = serializers.CharField(required=False, allow_blank=True, default='')
    checklist = ChecklistSerializer()

    def to_trip(self):
        data = dict(self.validated_data)
        data.pop('checklist')
        return Trip(**data)


class EndTripSerializer(serializers.Serializer):
    end_km = serializers.IntegerField(min_value=0, help_text="Odometer reading on arrival.")
    end_time = serializers.DateTimeField(required=False, allow_null=True, default=None)
    fuel_expense = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, default=0)
    other_expense = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, default=0)
    expense_notes = serializers.CharField(required=False, allow_blank=True, default='')
    arrival_note = serializers.CharField(required=False, allow_blank=True, default='')

    def to_expenses(self):
        return TripExpenses(
            fuel=self.validated_data['fuel_expense'],
            other=self.validated_data['other_expense'],
            notes=self.validated_data['expense_notes'],
        )


class CancelTripSerializer(serializers.Serializer):
    # Blank reasons reach the state machine so it can reject them with its own error
    reason = serializers.CharField(required=False, allow_blank=True, default='')
    actor = serializers.CharField(required=False, allow_blank=True, default='')


class TripNoteSerializer(serializers.Serializer):
    kind = serializers.ChoiceField(choices=TRIP_LOG_KIND_CHOICES)
    text = serializers.CharField()
    author = serializers.CharField(required=False, allow_blank=True, default='')


class ChangeRouteSerializer(serializers.Serializer):
    destination = serializers.CharField()
    waypoints = serializers.ListField(child=serializers.CharField(), required=False, default=list)
    actor = serializers.CharField(required=False, allow_blank=True, default='')
