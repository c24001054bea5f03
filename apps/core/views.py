"""
Core views for the AquaTrack billing service.
"""

import logging

from django.http import JsonResponse
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.billing.tasks import ingest_meter_readings
from apps.core.permissions import IsAdminRole

logger = logging.getLogger(__name__)


def health_check(request):
    """
    GET /health/

    Simple health check endpoint for Docker and load balancer probes.
    Exempt from API key authentication.
    """
    return JsonResponse({'status': 'healthy'}, status=200)


class TriggerIngestionView(APIView):
    """
    POST /api/ingest-readings

    Trigger background billing of the meter readings file in DATA_DIR
    via a Celery task.
    """

    permission_classes = [IsAdminRole]

    def post(self, request):
        """Trigger meter reading ingestion."""
        task = ingest_meter_readings.delay()

        logger.info("Meter reading ingestion triggered, task=%s", task.id)

        return Response(
            {
                'message': 'Meter reading ingestion has been triggered.',
                'task_id': task.id,
            },
            status=status.HTTP_202_ACCEPTED,
        )
