"""Logging, event recording and task metrics."""
