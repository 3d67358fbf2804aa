from celery import Celery
from app.core.config import settings

celery = Celery(
    "nality",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["app.api.v1.onboarding.tasks"],
)
celery.conf.update(
    task_serializer=settings.CELERY_TASK_SERIALIZER,
    accept_content=settings.CELERY_ACCEPT_CONTENT,
    result_serializer=settings.CELERY_RESULT_SERIALIZER,
    timezone=settings.CELERY_TIMEZONE,
    enable_utc=True,
    task_track_started=True,
    task_time_limit=settings.WORKER_TIMEOUT,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_routes={
        "app.api.v1.onboarding.tasks.convert_onboarding_answers": {"queue": "onboarding_conversion"},
    },
)
