# contest_portal/celery_worker.py
from celery import Celery

from contest_portal.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND

celery_app = Celery(
    "contest_portal",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# Explicite importuj taski, zeby Celery je zarejestrowal
celery_app.conf.imports = ("contest_portal.services.notification_service",)

celery_app.conf.timezone = "UTC"
celery_app.conf.task_acks_late = True
