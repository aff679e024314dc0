# services/progress/__init__.py
"""progress package initializer: pure aggregation over loaded trails and records."""

__all__ = ["aggregator", "hierarchy", "tracking"]
