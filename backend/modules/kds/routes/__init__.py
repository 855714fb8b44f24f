# backend/modules/kds/routes/__init__.py

"""
Kitchen Display System routes.
"""

from .kds_routes import router, realtime_notifier, get_workflow_service

__all__ = ["router", "realtime_notifier", "get_workflow_service"]
