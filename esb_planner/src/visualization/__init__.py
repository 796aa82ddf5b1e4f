# src/visualization/__init__.py
from .dashboard import create_dashboard

__all__ = ["create_dashboard"]
