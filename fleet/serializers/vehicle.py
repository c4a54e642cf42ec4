from rest_framework import serializers

from fleet.clients.entity_store import EntityStore
from fleet.models import Vehicle, Driver
from fleet.services.queries import FleetQueries
from fleet.utils.text import normalize_plate, normalize_username


class VehicleSerializer(serializers.ModelSerializer):
    is_available = serializers.BooleanField(read_only=True)

    class Meta:
        model = Vehicle
        fields = [
            'id',
            'plate',
            'brand',
            'model',
            'year',
            'current_km',
            'fuel_level',
            'fuel_type',
            'status',
            'last_checklist',
            'is_available',
            'created_at',
            'updated_at',
        ]
        # Status and odometer only move through trip and maintenance transitions
        read_only_fields = ['status', 'last_checklist', 'created_at', 'updated_at']
        # Uniqueness is checked on the normalized plate in validate_plate
        extra_kwargs = {'plate': {'validators': []}}

    def validate_plate(self, value):
        plate = normalize_plate(value)
        if not plate:
            raise serializers.ValidationError("Plate must contain letters or digits.")
        existing = Vehicle.objects.filter(plate=plate)
        if self.instance is not None:
            existing = existing.exclude(pk=self.instance.pk)
        if existing.exists():
            raise serializers.ValidationError("A vehicle with this plate already exists.")
        return plate

    def get_fields(self):
        fields = super().get_fields()
        if self.instance is not None:
            fields['current_km'].read_only = True
        return fields


class DriverSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, required=False, min_length=6)
    total_points = serializers.SerializerMethodField()

    class Meta:
        model = Driver
        fields = [
            'id',
            'name',
            'license',
            'category',
            'email',
            'phone',
            'company',
            'notes',
            'username',
            'password',
            'password_changed',
            'initial_points',
            'total_points',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['password_changed', 'created_at', 'updated_at']
        extra_kwargs = {'username': {'validators': []}}

    def get_total_points(self, obj):
        # List views annotate fine_points on the queryset
        fine_points = getattr(obj, 'fine_points', None)
        if fine_points is None:
            return FleetQueries().driver_total_points(obj)
        return obj.initial_points + fine_points

    def validate_username(self, value):
        username = normalize_username(value)
        existing = Driver.objects.filter(username=username)
        if self.instance is not None:
            existing = existing.exclude(pk=self.instance.pk)
        if existing.exists():
            raise serializers.ValidationError("This username is already taken.")
        return username

    def validate(self, attrs):
        if self.instance is None and not attrs.get('password'):
            raise serializers.ValidationError({'password': 'A password is required for new drivers.'})
        return attrs

    def create(self, validated_data):
        raw_password = validated_data.pop('password')
        driver = Driver(**validated_data)
        driver.set_password(raw_password, issued_by_admin=True)
        return EntityStore.upsert_driver(driver)

    def update(self, instance, validated_data):
        raw_password = validated_data.pop('password', None)
        for name, value in validated_data.items():
            setattr(instance, name, value)
        if raw_password:
            instance.set_password(raw_password, issued_by_admin=True)
        return EntityStore.upsert_driver(instance)


class DriverLoginSerializer(serializers.Serializer):
    username = serializers.CharField(help_text="Driver username; whitespace and case are ignored.")
    password = serializers.CharField(write_only=True)


class DriverPasswordChangeSerializer(serializers.Serializer):
    current_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(write_only=True, min_length=6)

    def validate(self, attrs):
        if attrs['new_password'] == attrs['current_password']:
            raise serializers.ValidationError({'new_password': 'Choose a password different from the current one.'})
        return attrs


class OdometerCorrectionSerializer(serializers.Serializer):
    km = serializers.IntegerField(min_value=0, help_text="Corrected odometer reading; must exceed the current one.")
    reason = serializers.CharField(help_text="Why the reading is being corrected; kept in the audit log.")
    actor = serializers.CharField(required=False, allow_blank=True, default='')
