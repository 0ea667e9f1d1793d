"""
Celery application for the learning platform.
Scheduled system jobs are declared in settings.CELERY_BEAT_SCHEDULE.
"""
import os

from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'learning_platform.settings')

app = Celery('learning_platform')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()
