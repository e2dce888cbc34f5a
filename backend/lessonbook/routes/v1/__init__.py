"""
API v1 Routes

Versioned API endpoints under /api/v1.
"""

from . import lessons, pricing, prometheus, teachers, trials

__all__ = ["lessons", "pricing", "prometheus", "teachers", "trials"]
