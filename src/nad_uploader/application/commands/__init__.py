"""
Commands (CQRS write side)

Contains:
    - start_enrollment.py: StartEnrollmentCommand for POST /api/enrollments
"""
