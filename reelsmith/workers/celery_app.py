"""Celery application configuration.

This module configures the Celery application for Reelsmith background tasks.
Uses Redis as both broker and result backend.
"""

import asyncio
from collections.abc import Coroutine
from typing import Any, TypeVar

from celery import Celery
from celery.signals import worker_process_init

from reelsmith.config.pipeline import QueueConfig
from reelsmith.core.config import settings
from reelsmith.core.logging import setup_logging

queue_config = QueueConfig()

# Create Celery app
celery_app = Celery(
    "reelsmith",
    broker=str(settings.celery_broker_url),
    backend=str(settings.celery_result_backend),
    include=[
        "reelsmith.workers.pipeline",
        "reelsmith.workers.upload",
    ],
)

# Celery configuration
celery_app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    # Task execution settings
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_time_limit=1800,  # 30 minutes hard limit (renders)
    task_soft_time_limit=1740,
    # Worker settings
    worker_prefetch_multiplier=1,
    worker_concurrency=queue_config.worker_concurrency,
    worker_max_tasks_per_child=100,
    # Result settings
    result_expires=86400,  # 24 hours
    # Task routes
    task_routes={
        "reelsmith.workers.pipeline.*": {"queue": "pipeline"},
        "reelsmith.workers.upload.*": {"queue": "upload"},
    },
    # Default queue
    task_default_queue="default",
)


@worker_process_init.connect
def _configure_worker_logging(**kwargs: Any) -> None:
    setup_logging()


T = TypeVar("T")

_loop: asyncio.AbstractEventLoop | None = None


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine on this worker process's event loop.

    The loop lives as long as the process so pooled database and HTTP
    connections stay bound to a single loop across tasks.
    """
    global _loop
    if _loop is None or _loop.is_closed():
        _loop = asyncio.new_event_loop()
        asyncio.set_event_loop(_loop)
    return _loop.run_until_complete(coro)


__all__ = ["celery_app", "run_async"]
