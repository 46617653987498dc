from celery import Celery

from callrecords.core.config import settings

celery_app = Celery(
    "callrecords",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["callrecords.tasks"],
)
