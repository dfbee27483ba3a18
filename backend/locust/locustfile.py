"""
Locust Load Test Suite

Schedules are owned by the scheduling tooling, so point the run at one that
already exists (LOAD_SCHEDULE_ID, default 1). Tokens are minted locally with
the same SECRET_KEY the engine uses.

Run scenarios:
  locust -f locustfile.py --tags contention   # Many customers, few seats
  locust -f locustfile.py --tags lifecycle    # Book -> pay -> cancel
  locust -f locustfile.py --tags throughput   # Schedule cache + seat map
  locust -f locustfile.py --tags edge         # Bad input
  locust -f locustfile.py                     # All tests
"""

import os
import random
from decimal import Decimal

from locust import HttpUser, between, tag, task

from booking_engine.core.security import create_access_token

SCHEDULE_ID = int(os.environ.get("LOAD_SCHEDULE_ID", "1"))
# Small pool so that requests overlap
HOT_SEATS = [f"A{n}" for n in range(1, 11)]


def auth_headers() -> dict:
    customer_id = random.randint(1, 1_000_000)
    token = create_access_token(data={"sub": str(customer_id)})
    return {"Authorization": f"Bearer {token}"}


class ContentionUser(HttpUser):
    """
    TEST 1: Contention - many customers -> 10 seats

    Run: locust -f locustfile.py --tags contention -u 100 -r 50 --run-time 30s

    After test, verify no seat is held twice:
      SELECT seat_label, COUNT(*) FROM booking_seats
      WHERE schedule_id = X AND status = 'confirmed'
      GROUP BY seat_label HAVING COUNT(*) > 1;
    Should return no rows.
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        self.headers = auth_headers()

    @tag("contention")
    @task
    def book_overlapping_seats(self):
        seats = random.sample(HOT_SEATS, k=random.randint(1, 3))
        with self.client.post(
            "/api/v1/bookings/",
            json={"schedule_id": SCHEDULE_ID, "seat_numbers": seats},
            headers=self.headers,
            name="/api/v1/bookings/ [contention]",
            catch_response=True,
        ) as resp:
            if resp.status_code in (201, 409):
                resp.success()  # 409: seats gone or claim conflict
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class LifecycleUser(HttpUser):
    """
    TEST 2: Booking lifecycle - book, pay the expected amount, cancel

    Run: locust -f locustfile.py --tags lifecycle -u 50 -r 10 --run-time 60s

    Cancellation frees seats, so the schedule never sells out here.
    """
    wait_time = between(0.2, 1)

    def on_start(self):
        self.headers = auth_headers()

    @tag("lifecycle")
    @task
    def book_pay_cancel(self):
        seats = [f"L{random.randint(1, 200)}"]
        resp = self.client.post(
            "/api/v1/bookings/",
            json={"schedule_id": SCHEDULE_ID, "seat_numbers": seats},
            headers=self.headers,
            name="/api/v1/bookings/ [lifecycle]",
        )
        if resp.status_code != 201:
            return
        booking_id = resp.json()["booking_id"]

        resp = self.client.get(
            f"/api/v1/payments/expected-amount/{booking_id}",
            headers=self.headers,
            name="/api/v1/payments/expected-amount/{id}",
        )
        if resp.status_code != 200:
            return
        amount = Decimal(str(resp.json()["amount"]))

        self.client.post(
            "/api/v1/payments/",
            json={
                "booking_id": booking_id,
                "amount_paid": str(amount),
                "payment_method": "Mobile Money",
                "phone_number": "0712345678",
            },
            headers=self.headers,
        )

        self.client.post(
            f"/api/v1/bookings/{booking_id}/cancel",
            headers=self.headers,
            name="/api/v1/bookings/{id}/cancel",
        )


class ThroughputUser(HttpUser):
    """
    TEST 3: Throughput - schedule cache vs. live seat map

    Run with Redis up and then down, compare P95 of the two endpoints.
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def schedule_cached(self):
        self.client.get(f"/api/v1/schedules/{SCHEDULE_ID}", name="/api/v1/schedules/{id} [cached]")

    @tag("throughput", "read")
    @task(5)
    def seat_map(self):
        self.client.get(f"/api/v1/schedules/{SCHEDULE_ID}/seats", name="/api/v1/schedules/{id}/seats")

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 4: Edge cases - bad input must map to proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def on_start(self):
        self.headers = auth_headers()

    def _expect(self, resp, codes):
        if resp.status_code in codes:
            resp.success()
        else:
            resp.failure(f"Expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def unknown_schedule(self):
        with self.client.post(
            "/api/v1/bookings/",
            json={"schedule_id": 999999, "seat_numbers": "A1"},
            headers=self.headers,
            catch_response=True,
        ) as resp:
            self._expect(resp, (404,))

    @tag("edge")
    @task
    def too_many_seats(self):
        with self.client.post(
            "/api/v1/bookings/",
            json={"schedule_id": SCHEDULE_ID, "seat_numbers": "Z1,Z2,Z3,Z4,Z5,Z6"},
            headers=self.headers,
            catch_response=True,
        ) as resp:
            self._expect(resp, (400,))

    @tag("edge")
    @task
    def blank_selection(self):
        with self.client.post(
            "/api/v1/bookings/",
            json={"schedule_id": SCHEDULE_ID, "seat_numbers": " , ,"},
            headers=self.headers,
            catch_response=True,
        ) as resp:
            self._expect(resp, (400,))

    @tag("edge")
    @task
    def wrong_amount(self):
        with self.client.post(
            "/api/v1/payments/",
            json={
                "booking_id": 999999,
                "amount_paid": "1.00",
                "payment_method": "Card",
            },
            headers=self.headers,
            catch_response=True,
        ) as resp:
            self._expect(resp, (404,))

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post(
            "/api/v1/bookings/",
            data="not json at all",
            headers=self.headers,
            catch_response=True,
        ) as resp:
            self._expect(resp, (400, 422))

    @tag("edge")
    @task
    def missing_auth(self):
        with self.client.post(
            "/api/v1/bookings/",
            json={"schedule_id": SCHEDULE_ID, "seat_numbers": "A1"},
            catch_response=True,
        ) as resp:
            self._expect(resp, (401,))
