"""
Celery application for the AquaTrack billing service.
"""

import os

from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

app = Celery('aquatrack')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()
