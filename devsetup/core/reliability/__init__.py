"""Retry and backoff."""
