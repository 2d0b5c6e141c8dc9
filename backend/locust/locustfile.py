"""
Locust Load Test Suite

Many eligible users race for the slots of a single room. Seeding writes
users, sessions, enrollments, tickets and the room straight into the
database configured by DATABASE_URL, since the API has no admin surface.

Run scenarios:
  locust -f locustfile.py --tags capacity   # Race for one room
  locust -f locustfile.py --tags read       # Hotel catalog and GET /booking
  locust -f locustfile.py                   # All tests

After a capacity run, verify:
  SELECT COUNT(*) FROM bookings WHERE room_id = <printed room id>;
Should be <= ROOM_CAPACITY
"""

import asyncio
import os
from datetime import date

from locust import HttpUser, task, between, tag, events

from hotel_booking.db.session import AsyncSessionLocal, engine
from hotel_booking.models import Enrollment, Address, Hotel, Room, Ticket, TicketStatus, TicketType, User
from hotel_booking.core.security import hash_password
from hotel_booking.services.auth_service import open_session

ROOM_CAPACITY = int(os.getenv("LOAD_ROOM_CAPACITY", "10"))
SEEDED_USERS = int(os.getenv("LOAD_USERS", "200"))

# Shared state filled by the seed step
TOKENS: list[str] = []
ROOM_ID = None
HOTEL_ID = None


async def _seed() -> None:
    global ROOM_ID, HOTEL_ID
    run_id = os.urandom(4).hex()

    async with AsyncSessionLocal() as db:
        hotel = Hotel(name=f"Load Test Hotel {run_id}", image="https://example.com/load.jpg")
        room = Room(hotel=hotel, name="101", capacity=ROOM_CAPACITY)
        ticket_type = TicketType(name="Hotel pass", price=600, is_remote=False, includes_hotel=True)
        db.add_all([hotel, room, ticket_type])
        await db.flush()

        password = hash_password("loadtest123")
        for i in range(SEEDED_USERS):
            user = User(email=f"load_{run_id}_{i}@example.com", hashed_password=password)
            db.add(user)
            await db.flush()
            enrollment = Enrollment(
                user_id=user.id,
                name=f"Load {i}",
                cpf=f"{run_id[:3]}{i:08d}",
                birthday=date(1990, 1, 1),
                phone="(21) 90000-0000",
                address=Address(
                    cep="20000-000", street="Load St", city="Rio", state="RJ",
                    number=str(i), neighborhood="Centro",
                ),
            )
            db.add(enrollment)
            await db.flush()
            db.add(Ticket(enrollment_id=enrollment.id, ticket_type_id=ticket_type.id, status=TicketStatus.PAID))
            TOKENS.append(await open_session(db, user))

        await db.commit()
        ROOM_ID, HOTEL_ID = room.id, hotel.id

    await engine.dispose()


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    """Setup: one room with ROOM_CAPACITY slots and SEEDED_USERS eligible users."""
    asyncio.run(_seed())
    print("\n" + "=" * 60)
    print(f"SETUP: room {ROOM_ID} (capacity {ROOM_CAPACITY}), {len(TOKENS)} users")
    print("=" * 60)


class CapacityUser(HttpUser):
    """
    TEST 1: Capacity - SEEDED_USERS users -> ROOM_CAPACITY slots

    Run: locust -f locustfile.py --tags capacity -u 200 -r 100 --run-time 30s
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        self.headers = {"Authorization": f"Bearer {TOKENS.pop()}"} if TOKENS else {}

    @tag("capacity")
    @task
    def reserve_room(self):
        if not ROOM_ID or not self.headers:
            return

        with self.client.post(
            "/booking",
            json={"roomId": ROOM_ID},
            headers=self.headers,
            catch_response=True,
        ) as resp:
            if resp.status_code in (200, 403):
                resp.success()  # 403: room full or already booked
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ReadUser(HttpUser):
    """
    TEST 2: Reads - catalog with live occupancy, and the caller's booking

    Run: locust -f locustfile.py --tags read -u 100 -r 20 --run-time 60s
    """
    wait_time = between(0.1, 0.5)

    def on_start(self):
        self.headers = {"Authorization": f"Bearer {TOKENS.pop()}"} if TOKENS else {}

    @tag("read")
    @task(3)
    def hotel_detail(self):
        if HOTEL_ID and self.headers:
            self.client.get(f"/hotels/{HOTEL_ID}", headers=self.headers, name="/hotels/[id]")

    @tag("read")
    @task(1)
    def my_booking(self):
        if not self.headers:
            return
        with self.client.get("/booking", headers=self.headers, catch_response=True) as resp:
            if resp.status_code in (200, 404):
                resp.success()
            else:
                resp.failure(f"Unexpected: {resp.status_code}")
