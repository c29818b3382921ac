"""
Application Services

Responsibility:
    Orchestration of the enrollment workflow.

Contains:
    - enrollment_batch.py: concurrent batch processor shared by CLI and Celery
    - file_upload_use_case.py: workbook upload and preview
    - start_enrollment_use_case.py: job dispatch
"""
