"""
Application Layer Package

Responsibility:
    Coordinates enrollment use cases, runs batches in the background with
    Celery and implements the CQRS split for the web flow.

Contains:
    - commands/: CQRS write operations
    - queries/: CQRS read operations
    - services/: Use Cases and the enrollment batch processor
    - tasks/: Celery async tasks
    - models: Shared Application Layer enums

Does NOT contain:
    - Row mapping rules (in Domain Layer)
    - HTTP handling (in API Layer)
    - Redis, HTTP or file details (in Infrastructure Layer)
"""
