"""
API Routers Package

Routers are thin wrappers around Application Layer use cases, wired with
FastAPI dependency injection.

Available Routers:
    - files: workbook upload
    - enrollments: job dispatch
    - jobs: job status polling
    - results: CSV report download
"""
