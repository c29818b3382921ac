"""
Queries (CQRS read side)

Contains:
    - get_job_status.py: job progress lookup backed by Redis
"""
