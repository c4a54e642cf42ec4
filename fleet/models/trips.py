import uuid

from django.db import models
from django.db.models import Q
from django.utils import timezone

from fleet.core.constants import (
    TRIP_PHASE_CHOICES, TRIP_SCHEDULED, TRIP_ACTIVE, TRIP_COMPLETED, TRIP_CANCELLED,
    TRIP_LOG_KIND_CHOICES,
)
from fleet.models.core import Vehicle, Driver


class Trip(models.Model):
    """
    A trip through its whole lifecycle.

    ``phase`` is the single source of truth for which collection the trip
    belongs to: SCHEDULED trips carry ``scheduled_date``/``notes``; ACTIVE trips
    gain ``start_time``/``start_km``; COMPLETED and CANCELLED are terminal.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    phase = models.CharField(max_length=12, choices=TRIP_PHASE_CHOICES, default=TRIP_SCHEDULED)

    driver = models.ForeignKey(Driver, on_delete=models.SET_NULL, null=True, related_name='trips')
    vehicle = models.ForeignKey(Vehicle, on_delete=models.PROTECT, related_name='trips')

    origin = models.CharField(max_length=255, blank=True)
    destination = models.CharField(max_length=255)
    waypoints = models.JSONField(default=list, blank=True)
    city = models.CharField(max_length=100, blank=True)
    state = models.CharField(max_length=50, blank=True)
    zip_code = models.CharField(max_length=12, blank=True)

    # Schedule
    scheduled_date = models.DateField(null=True, blank=True)
    notes = models.TextField(blank=True)

    # Departure
    start_time = models.DateTimeField(null=True, blank=True)
    start_km = models.PositiveIntegerField(null=True, blank=True)

    # Completion
    end_time = models.DateTimeField(null=True, blank=True)
    distance = models.PositiveIntegerField(null=True, blank=True)
    fuel_expense = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    other_expense = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    expense_notes = models.TextField(blank=True)

    # Cancellation
    is_cancelled = models.BooleanField(default=False)
    cancellation_reason = models.TextField(blank=True)
    cancelled_by = models.CharField(max_length=120, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.vehicle.plate} -> {self.destination} ({self.phase})"

    @property
    def is_scheduled(self):
        return self.phase == TRIP_SCHEDULED

    @property
    def is_active(self):
        return self.phase == TRIP_ACTIVE

    @property
    def is_closed(self):
        return self.phase in (TRIP_COMPLETED, TRIP_CANCELLED)

    @property
    def duration(self):
        """Calculate the trip duration in minutes."""
        if self.end_time and self.start_time:
            delta = self.end_time - self.start_time
            return delta.total_seconds() / 60
        return None

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['phase']),
            models.Index(fields=['vehicle', 'scheduled_date']),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['vehicle'],
                condition=Q(phase=TRIP_ACTIVE),
                name='one_active_trip_per_vehicle',
            ),
            models.UniqueConstraint(
                fields=['driver'],
                condition=Q(phase=TRIP_ACTIVE),
                name='one_active_trip_per_driver',
            ),
        ]


class TripLogEntry(models.Model):
    """Append-only, timestamped note attached to a trip."""
    trip = models.ForeignKey(Trip, on_delete=models.CASCADE, related_name='log_entries')
    kind = models.CharField(max_length=20, choices=TRIP_LOG_KIND_CHOICES)
    text = models.TextField()
    author = models.CharField(max_length=120, blank=True)
    timestamp = models.DateTimeField(default=timezone.now)

    def __str__(self):
        return f"{self.trip_id} [{self.kind}] {self.timestamp:%Y-%m-%d %H:%M}"

    class Meta:
        ordering = ['timestamp', 'id']
        verbose_name_plural = "Trip log entries"
