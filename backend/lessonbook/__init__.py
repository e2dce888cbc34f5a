"""Lesson booking and pricing engine for the tutoring marketplace."""
