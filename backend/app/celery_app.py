"""Celery application configuration."""

from __future__ import annotations

import logging

from celery import Celery

from app.core.config import settings

logger = logging.getLogger(__name__)

celery_app = Celery(
    "evently",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["app.tasks.notifications"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    broker_connection_retry_on_startup=True,
    # Publishing happens on the request thread: fail fast when the broker is down
    task_publish_retry=False,
    broker_connection_timeout=settings.CELERY_BROKER_CONNECT_TIMEOUT_SECONDS,
    broker_transport_options={
        "max_retries": 0,
        "socket_connect_timeout": settings.CELERY_BROKER_CONNECT_TIMEOUT_SECONDS,
    },
    # Notifications are best effort: acknowledge on receipt, never redeliver
    task_acks_late=False,
    task_ignore_result=True,
    task_always_eager=settings.CELERY_TASK_ALWAYS_EAGER,
    # Worker settings
    worker_prefetch_multiplier=4,
    worker_max_tasks_per_child=500,
)

logger.info(f"Celery app configured with broker: {settings.CELERY_BROKER_URL}")
