from rest_framework import viewsets, mixins, status, filters
from rest_framework.decorators import action
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend
from drf_yasg.utils import swagger_auto_schema

from fleet.clients.entity_store import EntityStore
from fleet.core.constants import TRIP_SCHEDULED
from fleet.core.types import Checklist
from fleet.models import Trip
from fleet.serializers import (
    TripSerializer, TripLogEntrySerializer, ScheduleSerializer, StartTripSerializer,
    StartScheduledTripSerializer, EndTripSerializer, CancelTripSerializer,
    TripNoteSerializer, ChangeRouteSerializer, AuditLogSerializer,
)
from fleet.services import FleetStateMachine, SchedulingService


def _request_actor(request, fallback=''):
    """The authenticated user when there is one, else the name sent by the client."""
    user = getattr(request, 'user', None)
    if user is not None and user.is_authenticated:
        return user
    return fallback or None


class TripViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """
    API endpoint for trips in every phase.

    Trips are created by starting them (``POST /trips/``) or by starting a
    schedule (``POST /trips/{id}/start/``); every transition goes through the
    fleet state machine.
    """
    queryset = Trip.objects.select_related('vehicle', 'driver').prefetch_related('log_entries')
    serializer_class = TripSerializer
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_fields = ['phase', 'vehicle', 'driver', 'scheduled_date']
    ordering_fields = ['start_time', 'end_time', 'scheduled_date', 'created_at']
    ordering = ['-created_at']

    @property
    def state_machine(self):
        return FleetStateMachine()

    @swagger_auto_schema(
        request_body=StartTripSerializer,
        responses={201: TripSerializer, 400: "Invalid checklist or trip data", 409: "Vehicle unavailable"},
        operation_description="Start an unscheduled trip with the departure checklist.",
        tags=['Trips'],
    )
    def create(self, request, *args, **kwargs):
        serializer = StartTripSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        trip = serializer.to_trip()
        checklist = Checklist(driver_id=str(trip.driver_id), **serializer.validated_data['checklist'])
        trip = self.state_machine.start_trip(trip, checklist)
        return Response(TripSerializer(trip).data, status=status.HTTP_201_CREATED)

    @swagger_auto_schema(
        request_body=StartScheduledTripSerializer,
        responses={200: TripSerializer, 400: "Invalid checklist", 409: "Vehicle unavailable"},
        operation_description="Start a scheduled trip. The schedule keeps its id and becomes ACTIVE.",
        tags=['Trips'],
    )
    @action(detail=True, methods=['post'])
    def start(self, request, pk=None):
        """
        POST /api/fleet/trips/{id}/start/
        """
        trip = self.get_object()
        serializer = StartScheduledTripSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        checklist = Checklist(driver_id=str(trip.driver_id), **serializer.validated_data['checklist'])
        trip = self.state_machine.start_trip(trip, checklist)
        return Response(TripSerializer(trip).data)

    @swagger_auto_schema(
        request_body=EndTripSerializer,
        responses={200: TripSerializer, 400: "Invalid odometer or trip not active"},
        tags=['Trips'],
    )
    @action(detail=True, methods=['post'])
    def end_trip(self, request, pk=None):
        """
        End a trip with the arrival odometer and expenses.
        POST /api/fleet/trips/{id}/end_trip/
        """
        serializer = EndTripSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        trip = self.state_machine.end_trip(
            pk,
            data['end_km'],
            end_time=data['end_time'],
            expenses=serializer.to_expenses(),
            arrival_note=data['arrival_note'],
        )
        return Response(TripSerializer(trip).data)

    @swagger_auto_schema(
        request_body=CancelTripSerializer,
        responses={200: TripSerializer, 400: "Missing reason or trip not active"},
        tags=['Trips'],
    )
    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        serializer = CancelTripSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        trip = self.state_machine.cancel_trip(
            pk,
            serializer.validated_data['reason'],
            actor=_request_actor(request, serializer.validated_data['actor']),
        )
        return Response(TripSerializer(trip).data)

    @swagger_auto_schema(
        method='post',
        request_body=TripNoteSerializer,
        responses={201: TripLogEntrySerializer},
        tags=['Trips'],
    )
    @action(detail=True, methods=['get', 'post'])
    def notes(self, request, pk=None):
        """
        GET lists the trip log; POST appends a note to an active trip.
        """
        if request.method == 'GET':
            trip = self.get_object()
            return Response(TripLogEntrySerializer(trip.log_entries.all(), many=True).data)

        serializer = TripNoteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        entry = self.state_machine.add_trip_note(
            pk,
            serializer.validated_data['kind'],
            serializer.validated_data['text'],
            author=_request_actor(request, serializer.validated_data['author']),
        )
        return Response(TripLogEntrySerializer(entry).data, status=status.HTTP_201_CREATED)

    @swagger_auto_schema(
        request_body=ChangeRouteSerializer,
        responses={200: TripSerializer},
        tags=['Trips'],
    )
    @action(detail=True, methods=['post'])
    def change_route(self, request, pk=None):
        serializer = ChangeRouteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        trip = self.state_machine.change_route(
            pk,
            serializer.validated_data['destination'],
            waypoints=serializer.validated_data['waypoints'],
            actor=_request_actor(request, serializer.validated_data['actor']),
        )
        return Response(TripSerializer(trip).data)

    @action(detail=True, methods=['get'])
    def audit(self, request, pk=None):
        """
        Cancellation and route-change history of a trip.
        GET /api/fleet/trips/{id}/audit/
        """
        trip = self.get_object()
        return Response(AuditLogSerializer(EntityStore.list_audit_logs(entity_id=trip.id), many=True).data)


class ScheduleViewSet(viewsets.ModelViewSet):
    """
    API endpoint for scheduled trips.

    Bookings are checked against maintenance, double booking and the plate
    rotation rule; a blocked booking answers 409 with the restriction kind.
    """
    queryset = Trip.objects.filter(phase=TRIP_SCHEDULED).select_related('vehicle', 'driver')
    serializer_class = ScheduleSerializer
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_fields = ['vehicle', 'driver', 'scheduled_date']
    ordering_fields = ['scheduled_date', 'created_at']
    ordering = ['scheduled_date', 'created_at']

    @property
    def scheduling(self):
        return SchedulingService()

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        trip = self.scheduling.create_or_update_schedule(serializer.to_schedule_data())
        return Response(ScheduleSerializer(trip).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        instance = self.get_object()
        serializer = self.get_serializer(instance, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        data = {
            'driver_id': instance.driver_id,
            'vehicle_id': instance.vehicle_id,
            'scheduled_date': instance.scheduled_date,
            'destination': instance.destination,
            'city': instance.city,
            'state': instance.state,
        }
        data.update(serializer.to_schedule_data())
        trip = self.scheduling.create_or_update_schedule(data, exclude_id=instance.id)
        return Response(ScheduleSerializer(trip).data)

    def perform_destroy(self, instance):
        self.scheduling.delete_schedule(instance.id)
