from rest_framework import viewsets, mixins, status, filters
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView
from django_filters.rest_framework import DjangoFilterBackend

from fleet.clients.entity_store import EntityStore
from fleet.models import Fine, AppNotification
from fleet.serializers import FineSerializer, AppNotificationSerializer
from fleet.services import FleetStateMachine, FleetQueries


class FineViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, mixins.DestroyModelMixin,
                  viewsets.GenericViewSet):
    """
    API endpoint for traffic fines. Fines are never edited; deleting one is an
    admin override.
    """
    queryset = Fine.objects.select_related('driver', 'vehicle')
    serializer_class = FineSerializer
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_fields = ['driver', 'vehicle', 'date']
    ordering_fields = ['date', 'points', 'value']
    ordering = ['-date']

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        fine = FleetStateMachine().add_fine(Fine(**serializer.validated_data))
        return Response(FineSerializer(fine).data, status=status.HTTP_201_CREATED)

    def perform_destroy(self, instance):
        FleetStateMachine().delete_fine(instance.id)


class AppNotificationViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    queryset = AppNotification.objects.select_related('vehicle', 'driver')
    serializer_class = AppNotificationSerializer
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_fields = ['type', 'driver', 'vehicle', 'is_read']
    ordering = ['-timestamp']

    @action(detail=True, methods=['post'])
    def mark_read(self, request, pk=None):
        notification = EntityStore.mark_notification_read(pk)
        return Response(AppNotificationSerializer(notification).data)


class FleetStatsView(APIView):
    """
    Fleet summary.
    GET /api/fleet/stats/
    """

    def get(self, request, format=None):
        return Response(FleetQueries().summary())
