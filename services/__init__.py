# services/__init__.py
"""services package initializer: explicit exports."""

__all__ = ["assessment", "content", "progress"]
