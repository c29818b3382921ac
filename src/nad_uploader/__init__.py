"""
NAD Uploader

Bulk-enrolls bank customer accounts and merchants into the NAD alias
directory from Excel workbooks, recording every outcome in CSV reports.

Entry points:
    - nad_uploader.cli: interactive console runner
    - nad_uploader.api.main: FastAPI application (uvicorn nad_uploader.api.main:app)
    - nad_uploader.application.tasks.celery_app: Celery worker
"""

__version__ = "0.1.0"
