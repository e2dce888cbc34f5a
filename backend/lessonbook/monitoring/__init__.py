"""Metrics collection for the lesson booking engine."""
