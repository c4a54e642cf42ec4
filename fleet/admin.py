from django.contrib import admin

from .core.constants import TRIP_ACTIVE
from .models import (
    Vehicle, Driver, Trip, TripLogEntry, MaintenanceRecord, TireChange,
    Fine, AuditLog, AppNotification,
)


class TransitionRecordAdmin(admin.ModelAdmin):
    """Display-only admin for records written by fleet transitions."""

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Vehicle)
class VehicleAdmin(admin.ModelAdmin):
    list_display = ('plate', 'brand', 'model', 'year', 'status', 'current_km', 'fuel_level')
    list_filter = ('status', 'fuel_type')
    search_fields = ('plate', 'brand', 'model')
    # Status and odometer are owned by the state machine
    readonly_fields = ('status', 'last_checklist', 'created_at', 'updated_at')

    fieldsets = (
        ('Basic Information', {
            'fields': ('plate', 'brand', 'model', 'year', 'fuel_type')
        }),
        ('Operational State', {
            'fields': ('status', 'current_km', 'fuel_level', 'last_checklist')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def get_readonly_fields(self, request, obj=None):
        # The initial reading is set on creation; afterwards use correct_km
        if obj is not None:
            return self.readonly_fields + ('current_km',)
        return self.readonly_fields


@admin.register(Driver)
class DriverAdmin(admin.ModelAdmin):
    list_display = ('name', 'username', 'license', 'category', 'company', 'initial_points')
    list_filter = ('category', 'company')
    search_fields = ('name', 'username', 'license', 'email')
    readonly_fields = ('password', 'password_changed', 'created_at', 'updated_at')

    def has_delete_permission(self, request, obj=None):
        if obj is not None and obj.trips.filter(phase=TRIP_ACTIVE).exists():
            return False
        return super().has_delete_permission(request, obj)


class TripLogEntryInline(admin.TabularInline):
    model = TripLogEntry
    extra = 0
    readonly_fields = ('kind', 'text', 'author', 'timestamp')

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Trip)
class TripAdmin(TransitionRecordAdmin):
    list_display = ('vehicle', 'driver', 'destination', 'phase', 'scheduled_date', 'start_time', 'distance')
    list_filter = ('phase', 'scheduled_date')
    search_fields = ('vehicle__plate', 'driver__name', 'destination', 'city')
    date_hierarchy = 'created_at'
    inlines = [TripLogEntryInline]
    fieldsets = (
        ('Trip Information', {
            'fields': ('phase', 'vehicle', 'driver', 'origin', 'destination', 'waypoints')
        }),
        ('Location', {
            'fields': ('city', 'state', 'zip_code')
        }),
        ('Schedule', {
            'fields': ('scheduled_date', 'notes')
        }),
        ('Timing & Distance', {
            'fields': ('start_time', 'start_km', 'end_time', 'distance')
        }),
        ('Expenses', {
            'fields': ('fuel_expense', 'other_expense', 'expense_notes')
        }),
        ('Cancellation', {
            'fields': ('is_cancelled', 'cancellation_reason', 'cancelled_by'),
            'classes': ('collapse',)
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )


@admin.register(MaintenanceRecord)
class MaintenanceRecordAdmin(TransitionRecordAdmin):
    list_display = ('vehicle', 'service_type', 'date', 'return_date', 'km', 'cost')
    list_filter = ('date',)
    search_fields = ('vehicle__plate', 'service_type', 'notes')
    date_hierarchy = 'date'


@admin.register(TireChange)
class TireChangeAdmin(TransitionRecordAdmin):
    list_display = ('vehicle', 'date', 'brand', 'model', 'km')
    search_fields = ('vehicle__plate', 'brand')


@admin.register(Fine)
class FineAdmin(admin.ModelAdmin):
    list_display = ('driver', 'vehicle', 'date', 'value', 'points')
    list_filter = ('date',)
    search_fields = ('driver__name', 'vehicle__plate', 'description')
    raw_id_fields = ('driver', 'vehicle')
    date_hierarchy = 'date'


@admin.register(AuditLog)
class AuditLogAdmin(TransitionRecordAdmin):
    list_display = ('action', 'entity_id', 'user_name', 'timestamp')
    list_filter = ('action',)
    search_fields = ('entity_id', 'user_name', 'description')


@admin.register(AppNotification)
class AppNotificationAdmin(admin.ModelAdmin):
    list_display = ('type', 'title', 'vehicle', 'driver', 'timestamp', 'is_read')
    list_filter = ('type', 'is_read')
    search_fields = ('title', 'message')
    # Only the read flag may change
    readonly_fields = ('type', 'title', 'message', 'vehicle', 'driver', 'timestamp')

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
