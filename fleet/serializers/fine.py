from rest_framework import serializers

from fleet.models import Fine, AppNotification, AuditLog


class FineSerializer(serializers.ModelSerializer):
    driver_name = serializers.CharField(source='driver.name', read_only=True)

    class Meta:
        model = Fine
        fields = ['id', 'driver', 'driver_name', 'vehicle', 'date', 'value', 'points', 'description', 'created_at']
        read_only_fields = ['created_at']


class AppNotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = AppNotification
        fields = '__all__'
        read_only_fields = [f.name for f in AppNotification._meta.fields]


class AuditLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = AuditLog
        fields = '__all__'
