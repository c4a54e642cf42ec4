from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import (
    VehicleViewSet, DriverViewSet, TripViewSet, ScheduleViewSet,
    MaintenanceRecordViewSet, FineViewSet, AppNotificationViewSet, FleetStatsView,
)

router = DefaultRouter()
router.register(r'vehicles', VehicleViewSet)
router.register(r'drivers', DriverViewSet)
router.register(r'trips', TripViewSet)
router.register(r'schedules', ScheduleViewSet, basename='schedule')
router.register(r'maintenance', MaintenanceRecordViewSet)
router.register(r'fines', FineViewSet)
router.register(r'notifications', AppNotificationViewSet)

urlpatterns = [
    path('stats/', FleetStatsView.as_view(), name='fleet-stats'),
    path('', include(router.urls)),
]
