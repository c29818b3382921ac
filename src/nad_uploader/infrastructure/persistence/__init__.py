"""Persistence Infrastructure - Redis-backed job state."""
