"""Shared Domain - exceptions used across subdomains."""
