# backend/modules/tables/__init__.py

from .models.table_models import DiningTable, TableStatus
from .services.table_service import TableService

__all__ = ["DiningTable", "TableStatus", "TableService"]
