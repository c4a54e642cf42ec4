from django.db.models import ProtectedError, Sum
from rest_framework import viewsets, filters
from rest_framework.decorators import action
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend
from drf_yasg.utils import swagger_auto_schema

from fleet.clients.entity_store import EntityStore
from fleet.exceptions import ValidationError
from fleet.models import Vehicle, Driver
from fleet.serializers import (
    VehicleSerializer, DriverSerializer, DriverLoginSerializer, DriverPasswordChangeSerializer,
    OdometerCorrectionSerializer,
    MaintenanceRecordSerializer, TripSerializer,
)
from fleet.services import FleetQueries, FleetStateMachine
from fleet.views.trip import _request_actor


class VehicleViewSet(viewsets.ModelViewSet):
    """
    API endpoint for managing vehicles.

    Status and odometer are read-only here; they change through trips,
    maintenance and the correct_km action.
    """
    queryset = Vehicle.objects.all()
    serializer_class = VehicleSerializer
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['status', 'fuel_type', 'brand']
    search_fields = ['plate', 'brand', 'model']
    ordering_fields = ['plate', 'current_km', 'status', 'created_at']
    ordering = ['plate']

    def perform_destroy(self, instance):
        try:
            instance.delete()
        except ProtectedError:
            raise ValidationError(
                f"Vehicle {instance.plate} has trip or maintenance history and cannot be removed.",
                vehicle_id=str(instance.id),
            )

    @action(detail=True, methods=['get'])
    def maintenance_history(self, request, pk=None):
        """
        GET /api/fleet/vehicles/{id}/maintenance_history/
        """
        vehicle = self.get_object()
        records = EntityStore.list_maintenance(vehicle_id=vehicle.id)
        return Response(MaintenanceRecordSerializer(records, many=True).data)

    @action(detail=True, methods=['get'])
    def active_trip(self, request, pk=None):
        vehicle = self.get_object()
        trips = EntityStore.list_active_trips(vehicle_id=vehicle.id)
        if not trips:
            return Response({'active_trip': None})
        return Response({'active_trip': TripSerializer(trips[0]).data})

    @swagger_auto_schema(
        request_body=OdometerCorrectionSerializer,
        responses={200: VehicleSerializer, 400: "Reading not above the current odometer", 409: "Vehicle not parked"},
        tags=['Vehicles'],
    )
    @action(detail=True, methods=['post'])
    def correct_km(self, request, pk=None):
        """
        Raise the odometer of a parked vehicle; recorded as a KM_CORRECTION audit entry.
        POST /api/fleet/vehicles/{id}/correct_km/
        """
        vehicle = self.get_object()
        serializer = OdometerCorrectionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        vehicle = FleetStateMachine().correct_odometer(
            vehicle.id,
            serializer.validated_data['km'],
            serializer.validated_data['reason'],
            actor=_request_actor(request, serializer.validated_data['actor']),
        )
        return Response(VehicleSerializer(vehicle).data)


class DriverViewSet(viewsets.ModelViewSet):
    """
    API endpoint for managing driver accounts.
    """
    queryset = Driver.objects.annotate(fine_points=Sum('fines__points', default=0))
    serializer_class = DriverSerializer
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['category', 'company']
    search_fields = ['name', 'username', 'license', 'email']
    ordering_fields = ['name', 'created_at']
    ordering = ['name']

    def perform_destroy(self, instance):
        EntityStore.delete_driver(instance.id)

    @action(detail=True, methods=['get'])
    def points(self, request, pk=None):
        """
        Total penalty points: initial points plus every fine on record.
        GET /api/fleet/drivers/{id}/points/
        """
        driver = self.get_object()
        return Response({
            'driver_id': str(driver.id),
            'initial_points': driver.initial_points,
            'total_points': FleetQueries().driver_total_points(driver),
        })

    @swagger_auto_schema(
        request_body=DriverLoginSerializer,
        responses={200: DriverSerializer, 400: "Invalid credentials"},
        tags=['Drivers'],
    )
    @action(detail=False, methods=['post'])
    def login(self, request):
        serializer = DriverLoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        driver = EntityStore.authenticate(
            serializer.validated_data['username'], serializer.validated_data['password']
        )
        if driver is None:
            raise ValidationError('Invalid username or password.')
        return Response(DriverSerializer(driver).data)

    @swagger_auto_schema(
        request_body=DriverPasswordChangeSerializer,
        responses={200: DriverSerializer, 400: "Current password does not match"},
        tags=['Drivers'],
    )
    @action(detail=True, methods=['post'])
    def change_password(self, request, pk=None):
        """
        The driver replaces the password an administrator issued.
        POST /api/fleet/drivers/{id}/change_password/
        """
        driver = self.get_object()
        serializer = DriverPasswordChangeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        authenticated = EntityStore.authenticate(driver.username, serializer.validated_data['current_password'])
        if authenticated is None or authenticated.id != driver.id:
            raise ValidationError('Current password does not match.', driver_id=str(driver.id))

        authenticated.set_password(serializer.validated_data['new_password'], issued_by_admin=False)
        EntityStore.upsert_driver(authenticated)
        return Response(DriverSerializer(authenticated).data)
