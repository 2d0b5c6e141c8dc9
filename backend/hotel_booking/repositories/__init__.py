"""
Data-access layer. Each repository is constructed with the request's session.
"""

from .booking_repository import BookingRepository
from .enrollment_repository import EnrollmentRepository
from .ticket_repository import TicketRepository

__all__ = ['BookingRepository', 'EnrollmentRepository', 'TicketRepository']
