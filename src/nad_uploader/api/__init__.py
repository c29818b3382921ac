"""
API Layer - FastAPI Presentation Layer

Responsibility:
    HTTP interface for uploading workbooks, starting enrollment jobs,
    polling their progress and downloading the CSV reports. No business logic.

Contains:
    - FastAPI routers (files, enrollments, jobs, results)
    - Request/Response models (Pydantic)
    - Middleware configuration (CORS, logging)
"""
