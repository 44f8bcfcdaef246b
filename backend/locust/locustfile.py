"""
Locust Load Test Suite

Targets a seeded database: one chalet (LOAD_RESOURCE_ID) and one pool
session with a small capacity (LOAD_SESSION_ID).

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Test double booking / overselling
  locust -f locustfile.py --tags throughput   # Test capacity cache
  locust -f locustfile.py --tags edge         # Test bad input
  locust -f locustfile.py                     # All tests
"""

import os
import random
from datetime import date, timedelta
from locust import HttpUser, task, between, tag, events

RESOURCE_ID = int(os.environ.get("LOAD_RESOURCE_ID", "1"))
SESSION_ID = int(os.environ.get("LOAD_SESSION_ID", "1"))

# Everyone fights for the same stay and the same session date
CONTESTED_CHECK_IN = date.today() + timedelta(days=60)
CONTESTED_DAY = date.today() + timedelta(days=30)


def random_stay():
    check_in = date.today() + timedelta(days=random.randint(1, 365))
    return check_in, check_in + timedelta(days=random.randint(1, 7))


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "="*60)
    print(f"TARGET: chalet {RESOURCE_ID}, session {SESSION_ID}")
    print(f"Contested stay starts {CONTESTED_CHECK_IN}, contested session date {CONTESTED_DAY}")
    print("="*60)


class ConcurrencyUser(HttpUser):
    """
    TEST 1: Concurrency - many guests, one chalet, one session date

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT COUNT(*) FROM reservations
      WHERE resource_type = 'exclusive' AND resource_id = X
        AND interval_start < :end AND interval_end > :start
        AND status NOT IN ('cancelled', 'checked_out');
    Should be ≤ 1 for any night, and

      SELECT SUM(party_size) FROM reservations
      WHERE resource_type = 'shared' AND resource_id = Y
        AND session_date = :day AND status <> 'cancelled';
    Should be ≤ max_capacity
    """
    wait_time = between(0, 0.1)

    @tag("concurrency")
    @task
    def book_contested_stay(self):
        """Overlapping stays on the same chalet: exactly one wins."""
        offset = random.randint(0, 2)
        check_in = CONTESTED_CHECK_IN + timedelta(days=offset)
        with self.client.post("/api/v1/stays/",
            json={
                "resource_id": RESOURCE_ID,
                "check_in": check_in.isoformat(),
                "check_out": (check_in + timedelta(days=3)).isoformat(),
                "guests": 2,
            },
            name="/api/v1/stays/ [contested]",
            catch_response=True
        ) as resp:
            if resp.status_code in [201, 409]:
                resp.success()  # 409: somebody else got the nights
            else:
                resp.failure(f"Unexpected: {resp.status_code}")

    @tag("concurrency")
    @task(3)
    def buy_contested_tickets(self):
        """All users fight for the same session date."""
        with self.client.post("/api/v1/sessions/tickets",
            json={
                "session_id": SESSION_ID,
                "session_date": CONTESTED_DAY.isoformat(),
                "adults": random.randint(1, 3),
                "children": random.randint(0, 1),
            },
            name="/api/v1/sessions/tickets [contested]",
            catch_response=True
        ) as resp:
            if resp.status_code == 201:
                resp.success()
            elif resp.status_code == 409:
                resp.success()  # Expected: sold out
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(HttpUser):
    """
    TEST 2: Throughput - capacity cache effectiveness

    Run twice:
      1. With Redis: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
      2. With REDIS_ENABLED=false, run again

    Compare:
      - Avg response time
      - Requests/sec
      - P95/P99 latency
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def capacity_cached(self):
        """Hammer the cached endpoint."""
        day = date.today() + timedelta(days=random.randint(0, 6))
        self.client.get(f"/api/v1/sessions/{SESSION_ID}/capacity?date={day.isoformat()}",
            name="/api/v1/sessions/{id}/capacity [cached]")

    @tag("throughput", "read")
    @task(3)
    def quote_stay(self):
        check_in, check_out = random_stay()
        self.client.get(
            f"/api/v1/stays/{RESOURCE_ID}/quote?start={check_in.isoformat()}&end={check_out.isoformat()}",
            name="/api/v1/stays/{id}/quote")

    @tag("throughput")
    @task(1)
    def health_check(self):
        """Monitor system health."""
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    @tag("edge")
    @task
    def invalid_resource_id(self):
        """Book a chalet that does not exist."""
        check_in, check_out = random_stay()
        with self.client.post("/api/v1/stays/",
            json={"resource_id": 999999, "check_in": check_in.isoformat(), "check_out": check_out.isoformat()},
            catch_response=True
        ) as resp:
            if resp.status_code == 404:
                resp.success()
            else:
                resp.failure(f"Expected 404, got {resp.status_code}")

    @tag("edge")
    @task
    def reversed_dates(self):
        """Check-out before check-in."""
        check_in, check_out = random_stay()
        with self.client.post("/api/v1/stays/",
            json={"resource_id": RESOURCE_ID, "check_in": check_out.isoformat(), "check_out": check_in.isoformat()},
            catch_response=True
        ) as resp:
            if resp.status_code == 422:
                resp.success()
            else:
                resp.failure(f"Expected 422, got {resp.status_code}")

    @tag("edge")
    @task
    def zero_party(self):
        """Try to buy zero tickets."""
        with self.client.post("/api/v1/sessions/tickets",
            json={"session_id": SESSION_ID, "session_date": CONTESTED_DAY.isoformat(), "adults": 0},
            catch_response=True
        ) as resp:
            if resp.status_code == 422:
                resp.success()
            else:
                resp.failure(f"Expected 422, got {resp.status_code}")

    @tag("edge")
    @task
    def malformed_json(self):
        """Send garbage data."""
        with self.client.post("/api/v1/sessions/tickets",
            data="not json at all",
            catch_response=True
        ) as resp:
            if resp.status_code in [400, 422]:
                resp.success()
            else:
                resp.failure(f"Expected 400/422, got {resp.status_code}")


class RealisticUser(HttpUser):
    """
    TEST 4: Realistic mixed workload

    Run: locust -f locustfile.py -u 200 -r 20 --run-time 120s

    Simulates real traffic:
      - Mostly quoting and checking capacity
      - Some bookings
      - Rare cancellations
    """
    wait_time = between(1, 3)

    def on_start(self):
        self.reservation_ids = []

    @task(40)
    def browse_calendar(self):
        check_in = date.today()
        self.client.get(
            f"/api/v1/stays/{RESOURCE_ID}/blocked-dates"
            f"?start={check_in.isoformat()}&end={(check_in + timedelta(days=60)).isoformat()}",
            name="/api/v1/stays/{id}/blocked-dates")

    @task(20)
    def quote_tickets(self):
        day = date.today() + timedelta(days=random.randint(0, 14))
        self.client.get(
            f"/api/v1/sessions/{SESSION_ID}/quote?date={day.isoformat()}&adults={random.randint(1, 4)}",
            name="/api/v1/sessions/{id}/quote")

    @task(10)
    def book_random_stay(self):
        check_in, check_out = random_stay()
        with self.client.post("/api/v1/stays/",
            json={"resource_id": RESOURCE_ID, "check_in": check_in.isoformat(), "check_out": check_out.isoformat()},
            catch_response=True
        ) as resp:
            if resp.status_code == 201:
                self.reservation_ids.append(resp.json()["id"])
                resp.success()
            elif resp.status_code == 409:
                resp.success()
            else:
                resp.failure(f"Unexpected: {resp.status_code}")

    @task(2)
    def cancel_one(self):
        if self.reservation_ids:
            reservation_id = self.reservation_ids.pop()
            self.client.post(f"/api/v1/reservations/{reservation_id}/cancel",
                json={"reason": "load test"},
                name="/api/v1/reservations/{id}/cancel")
