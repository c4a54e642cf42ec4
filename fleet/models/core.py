import uuid

from django.contrib.auth.hashers import make_password, check_password
from django.core.validators import MaxValueValidator
from django.db import models

from fleet.core.constants import (
    VEHICLE_STATUS_CHOICES, VEHICLE_AVAILABLE, FUEL_TYPE_CHOICES,
)
from fleet.utils.text import normalize_plate, normalize_username


class Vehicle(models.Model):
    """
    Model representing a vehicle in the fleet.

    ``status`` and ``current_km`` are written only by the fleet state machine.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    plate = models.CharField(max_length=16, unique=True)
    brand = models.CharField(max_length=60)
    model = models.CharField(max_length=60)
    year = models.PositiveIntegerField(null=True, blank=True)

    current_km = models.PositiveIntegerField(default=0, help_text="Odometer reading in kilometers")
    fuel_level = models.PositiveSmallIntegerField(
        default=100,
        validators=[MaxValueValidator(100)],
        help_text="Fuel level in percent"
    )
    fuel_type = models.CharField(max_length=20, choices=FUEL_TYPE_CHOICES, default='diesel')
    status = models.CharField(max_length=20, choices=VEHICLE_STATUS_CHOICES, default=VEHICLE_AVAILABLE)

    # Point-in-time copy of the departure checklist, not a relation
    last_checklist = models.JSONField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.plate} ({self.status})"

    def save(self, *args, **kwargs):
        self.plate = normalize_plate(self.plate)
        super().save(*args, **kwargs)

    @property
    def is_available(self):
        """Check if vehicle can start a trip or enter maintenance."""
        return self.status == VEHICLE_AVAILABLE

    class Meta:
        ordering = ['plate']
        indexes = [
            models.Index(fields=['status']),
        ]


class Driver(models.Model):
    """
    Model representing a driver account.

    ``password_changed`` is False while the driver still holds a password
    issued by an administrator.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=120)
    license = models.CharField(max_length=20, unique=True, help_text="CNH number")
    category = models.CharField(max_length=5, default='B')
    email = models.EmailField(null=True, blank=True, unique=True)
    phone = models.CharField(max_length=30, blank=True)
    company = models.CharField(max_length=120, blank=True)
    notes = models.TextField(blank=True)

    username = models.CharField(max_length=60, unique=True)
    password = models.CharField(max_length=128)
    password_changed = models.BooleanField(default=False)

    initial_points = models.PositiveIntegerField(
        default=0,
        help_text="Penalty points carried over from before the driver joined the fleet"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} (@{self.username})"

    def save(self, *args, **kwargs):
        self.username = normalize_username(self.username)
        self.license = (self.license or '').strip()
        if self.email:
            self.email = self.email.strip().lower()
        else:
            self.email = None
        super().save(*args, **kwargs)

    def set_password(self, raw_password, issued_by_admin=True):
        self.password = make_password(raw_password)
        self.password_changed = not issued_by_admin

    def check_password(self, raw_password):
        return check_password(raw_password, self.password)

    class Meta:
        ordering = ['name']
