"""
Celery Tasks

Responsibility:
    Background enrollment jobs with progress tracking in Redis.

Contains:
    - celery_app.py: Celery configuration
    - enrollment_tasks.py: process_enrollment_task
"""
