"""Shared helpers for clock times and structured logging."""
