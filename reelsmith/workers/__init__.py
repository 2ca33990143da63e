"""Celery workers for Reelsmith.

Modules:
- celery_app: Celery application configuration
- pipeline: Pipeline step task
- upload: Auto-upload task
- dispatch: Dispatcher that enqueues the tasks above
"""
