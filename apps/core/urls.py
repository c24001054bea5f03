"""
Core app URL configuration for the reading ingestion trigger.
"""

from django.urls import path

from apps.core.views import TriggerIngestionView

urlpatterns = [
    path(
        'ingest-readings',
        TriggerIngestionView.as_view(),
        name='ingest-readings',
    ),
]
