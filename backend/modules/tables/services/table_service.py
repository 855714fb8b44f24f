# backend/modules/tables/services/table_service.py

"""
Seating collaborator: table availability changes driven by order lifecycle.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from core.exceptions import NotFoundError
from ..models.table_models import DiningTable, TableStatus

logger = logging.getLogger(__name__)


class TableService:
    def __init__(self, db: Session):
        self.db = db

    def get_table(self, table_id: int) -> Optional[DiningTable]:
        return self.db.query(DiningTable).filter(DiningTable.id == table_id).first()

    def release_table(self, table_id: int) -> DiningTable:
        """
        Mark a table available again once its order is closed.

        Only flushes; the change commits or rolls back with the caller's
        order transition.
        """
        return self._set_status(table_id, TableStatus.AVAILABLE)

    def _set_status(self, table_id: int, status: TableStatus) -> DiningTable:
        table = self.get_table(table_id)
        if not table:
            raise NotFoundError(f"Table {table_id} not found")

        previous = table.status
        table.status = status.value
        self.db.flush()
        logger.info(f"Table {table_id} status {previous} -> {status.value}")
        return table
