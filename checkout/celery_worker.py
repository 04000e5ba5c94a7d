# checkout/celery_worker.py
from celery import Celery

from checkout.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND

celery_app = Celery(
    "checkout",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# WAZNE: jawnie importuj taski, zeby Celery je zarejestrowal
celery_app.conf.imports = (
    "checkout.services.notification_service",
)

celery_app.conf.timezone = "UTC"
