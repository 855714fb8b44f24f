# backend/modules/kds/services/ticket_printer.py

"""
Kitchen ticket and receipt output.

There is no physical printer integration; tickets are rendered as plain
text and written to the log. Tickets are built from the order detail
captured with the transition, so printing never touches the database.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..schemas.kds_schemas import OrderDetail

logger = logging.getLogger(__name__)

RULE = "=" * 32


class TicketPrinter:
    def __init__(self, printer_name: str = "kitchen"):
        self.printer_name = printer_name

    def format_kitchen_ticket(
        self,
        order: OrderDetail,
        station: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> str:
        now = now or datetime.utcnow()
        content = f"KITCHEN TICKET - ORDER #{order.id}\n"
        content += f"Table: {order.table_id or 'N/A'}\n"
        if station:
            content += f"Station: {station}\n"
        content += RULE + "\n"

        for item in order.items:
            content += f"{item.quantity}x {item.product_name}\n"
            if item.comment:
                content += f"  Notes: {item.comment}\n"

        if order.comments:
            content += RULE + "\n"
            content += f"Comments: {order.comments}\n"

        content += RULE + "\n"
        content += f"Time: {now.strftime('%H:%M:%S')}\n"
        return content

    def format_receipt(self, order: OrderDetail, now: Optional[datetime] = None) -> str:
        now = now or datetime.utcnow()
        content = f"RECEIPT - ORDER #{order.id}\n"
        content += f"Table: {order.table_id or 'N/A'}\n"
        content += RULE + "\n"

        total = Decimal("0")
        for item in order.items:
            content += f"{item.quantity}x {item.product_name:<20} {item.subtotal:>8.2f}\n"
            total += item.subtotal

        content += RULE + "\n"
        content += f"TOTAL {total:>26.2f}\n"
        content += f"Time: {now.strftime('%Y-%m-%d %H:%M:%S')}\n"
        return content

    def print_kitchen_ticket(self, order: OrderDetail, station: Optional[str] = None) -> str:
        ticket = self.format_kitchen_ticket(order, station)
        logger.info(
            f"Kitchen ticket for order {order.id} sent to {self.printer_name}:\n{ticket}"
        )
        return ticket

    def print_receipt(self, order: OrderDetail) -> str:
        receipt = self.format_receipt(order)
        logger.info(f"Receipt for order {order.id} sent to {self.printer_name}:\n{receipt}")
        return receipt
