import uuid

from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone

from fleet.core.constants import AUDIT_ACTION_CHOICES, NOTIFICATION_TYPE_CHOICES
from fleet.models.core import Vehicle, Driver


class MaintenanceRecord(models.Model):
    """
    Model for tracking vehicle maintenance.

    A record without ``return_date`` is open: the vehicle is out of service
    until every declared category is signed off.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    vehicle = models.ForeignKey(Vehicle, on_delete=models.PROTECT, related_name='maintenance_records')

    date = models.DateField()
    return_date = models.DateTimeField(null=True, blank=True)

    service_type = models.CharField(max_length=255)
    categories = models.JSONField(default=list)
    cost = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    km = models.PositiveIntegerField(help_text="Odometer reading at entry")

    notes = models.TextField(blank=True)
    return_notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        state = 'open' if self.is_open else 'closed'
        return f"{self.vehicle.plate} - {self.service_type} ({state})"

    @property
    def is_open(self):
        return self.return_date is None

    class Meta:
        ordering = ['-date', '-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['vehicle'],
                condition=Q(return_date__isnull=True),
                name='one_open_maintenance_per_vehicle',
            ),
        ]


class TireChange(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    vehicle = models.ForeignKey(Vehicle, on_delete=models.CASCADE, related_name='tire_changes')
    maintenance_record = models.ForeignKey(
        MaintenanceRecord, on_delete=models.SET_NULL, null=True, blank=True, related_name='tire_changes'
    )
    date = models.DateField()
    brand = models.CharField(max_length=60, blank=True)
    model = models.CharField(max_length=60, blank=True)
    km = models.PositiveIntegerField()
    positions = models.JSONField(default=list)

    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.vehicle.plate} - {self.date} ({', '.join(self.positions)})"

    class Meta:
        ordering = ['-date']


class Fine(models.Model):
    """Traffic fine charged to a driver. Deleting one is an admin override."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    driver = models.ForeignKey(Driver, on_delete=models.CASCADE, related_name='fines')
    vehicle = models.ForeignKey(Vehicle, on_delete=models.SET_NULL, null=True, blank=True, related_name='fines')
    date = models.DateField()
    value = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    points = models.PositiveSmallIntegerField(default=0)
    description = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.driver.username} - {self.date} ({self.points} pts)"

    class Meta:
        ordering = ['-date']


class AuditLog(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    entity_id = models.CharField(max_length=64, help_text="ID of the trip or vehicle affected")
    user_id = models.CharField(max_length=64, blank=True)
    user_name = models.CharField(max_length=120, blank=True)
    action = models.CharField(max_length=20, choices=AUDIT_ACTION_CHOICES)
    description = models.TextField()
    previous_value = models.TextField(blank=True)
    new_value = models.TextField(blank=True)
    timestamp = models.DateTimeField(default=timezone.now)

    def __str__(self):
        return f"{self.action} on {self.entity_id} by {self.user_name or self.user_id}"

    class Meta:
        ordering = ['-timestamp']
        indexes = [
            models.Index(fields=['entity_id']),
        ]


class AppNotification(models.Model):
    """Alert derived from a state transition. Only ``is_read`` ever changes."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    type = models.CharField(max_length=20, choices=NOTIFICATION_TYPE_CHOICES)
    title = models.CharField(max_length=120)
    message = models.TextField()
    vehicle = models.ForeignKey(Vehicle, on_delete=models.CASCADE, null=True, blank=True, related_name='notifications')
    driver = models.ForeignKey(Driver, on_delete=models.CASCADE, null=True, blank=True, related_name='notifications')
    timestamp = models.DateTimeField(default=timezone.now)
    is_read = models.BooleanField(default=False)

    def __str__(self):
        return f"[{self.type}] {self.title}"

    class Meta:
        ordering = ['-timestamp']
