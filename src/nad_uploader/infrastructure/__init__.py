"""
Infrastructure Layer - External Dependencies

Technical capabilities behind the Application Layer.

Modules:
    - file_storage: workbook reading (openpyxl, Polars), CSV reports, upload storage
    - http: NAD API client (requests)
    - persistence: Redis connection pool and job progress tracking
"""
