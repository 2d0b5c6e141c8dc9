from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hotel_booking.models.ticket import Ticket


class TicketRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_ticket_by_enrollment_id(self, enrollment_id: int) -> Optional[Ticket]:
        """Ticket with its type loaded, so eligibility flags can be read without lazy IO."""
        result = await self.db.execute(
            select(Ticket)
            .where(Ticket.enrollment_id == enrollment_id)
            .options(selectinload(Ticket.ticket_type))
        )
        return result.scalar_one_or_none()
