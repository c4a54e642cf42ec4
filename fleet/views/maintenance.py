from rest_framework import viewsets, mixins, status, filters
from rest_framework.decorators import action
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend
from drf_yasg.utils import swagger_auto_schema

from fleet.models import MaintenanceRecord
from fleet.serializers import (
    MaintenanceRecordSerializer, OpenMaintenanceSerializer, ResolveMaintenanceSerializer,
)
from fleet.services import FleetStateMachine


class MaintenanceRecordViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """
    API endpoint for maintenance records.

    Creating a record takes the vehicle out of service; ``resolve`` releases it.
    """
    queryset = MaintenanceRecord.objects.select_related('vehicle').prefetch_related('tire_changes')
    serializer_class = MaintenanceRecordSerializer
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_fields = ['vehicle', 'date']
    ordering_fields = ['date', 'return_date', 'created_at']
    ordering = ['-date', '-created_at']

    def get_queryset(self):
        queryset = super().get_queryset()
        is_open = self.request.query_params.get('open')
        if is_open == 'true':
            queryset = queryset.filter(return_date__isnull=True)
        elif is_open == 'false':
            queryset = queryset.filter(return_date__isnull=False)
        return queryset

    @swagger_auto_schema(
        request_body=OpenMaintenanceSerializer,
        responses={201: MaintenanceRecordSerializer, 409: "Vehicle is not available"},
        tags=['Maintenance'],
    )
    def create(self, request, *args, **kwargs):
        serializer = OpenMaintenanceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        record = FleetStateMachine().open_maintenance(
            serializer.validated_data['vehicle'].id, serializer.to_request()
        )
        return Response(MaintenanceRecordSerializer(record).data, status=status.HTTP_201_CREATED)

    @swagger_auto_schema(
        request_body=ResolveMaintenanceSerializer,
        responses={200: MaintenanceRecordSerializer, 400: "Unchecked categories or invalid odometer"},
        tags=['Maintenance'],
    )
    @action(detail=True, methods=['post'])
    def resolve(self, request, pk=None):
        """
        Close the record and release the vehicle.
        POST /api/fleet/maintenance/{id}/resolve/
        """
        record = self.get_object()
        serializer = ResolveMaintenanceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        record = FleetStateMachine().resolve_maintenance(
            record.vehicle_id,
            record.id,
            data['exit_km'],
            exit_date=data['exit_date'],
            cost=data['cost'],
            notes=data['notes'],
            checklist_completion=data['checklist_completion'],
        )
        return Response(MaintenanceRecordSerializer(record).data)
