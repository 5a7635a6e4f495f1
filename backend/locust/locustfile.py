"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags selection   # Race selections on one booking
  locust -f locustfile.py --tags throughput  # Test listing cache
  locust -f locustfile.py --tags edge        # Test bad input
  locust -f locustfile.py                    # All tests
"""

import random
import string
import threading
from datetime import datetime, timedelta, timezone

from locust import HttpUser, between, events, tag, task

PASSWORD = "loadtest123"
APPLICANTS_PER_ROUND = 5

BOOKING_IDS = []

# One race round: a booking, its applications, and the owner's token
RACE = {"booking_id": None, "application_ids": [], "headers": None, "winners": 0}
RACE_LOCK = threading.Lock()


def random_email(prefix="load"):
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=10))
    return f"{prefix}_{suffix}@test.com"


def future_date(max_days=90):
    return (datetime.now(timezone.utc) + timedelta(days=random.randint(1, max_days))).isoformat()


def register_and_login(client, role):
    email = random_email(role)
    client.post("/api/v1/auth/register", json={
        "email": email,
        "password": PASSWORD,
        "name": f"Load {role}",
        "role": role,
    }, name="/api/v1/auth/register")
    resp = client.post("/api/v1/auth/login", json={"email": email, "password": PASSWORD},
                       name="/api/v1/auth/login")
    if resp.status_code != 200:
        return {}
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


def start_race_round(client):
    """Fresh booking with several pending applications for the racers."""
    owner = register_and_login(client, "client")
    if not owner:
        return
    resp = client.post("/api/v1/bookings/", json={
        "event_date": future_date(),
        "location": "Load Test Hall",
        "event_type": "Wedding",
    }, headers=owner, name="/api/v1/bookings/ [race setup]")
    if resp.status_code != 201:
        return
    booking_id = resp.json()["id"]

    application_ids = []
    for _ in range(APPLICANTS_PER_ROUND):
        photographer = register_and_login(client, "photographer")
        resp = client.post(f"/api/v1/bookings/{booking_id}/applications", headers=photographer,
                           name="/api/v1/bookings/{id}/applications")
        if resp.status_code == 201:
            application_ids.append(resp.json()["id"])

    RACE.update(booking_id=booking_id, application_ids=application_ids, headers=owner, winners=0)
    print(f"\nRace round on booking {booking_id} with {len(application_ids)} applications\n")


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "=" * 60)
    print("Selection race: every 200 per booking is a winner, there must be one.")
    print("=" * 60)


@events.test_stop.add_listener
def on_test_stop(environment, **kwargs):
    if RACE["booking_id"]:
        print(f"\nLast round booking {RACE['booking_id']}: {RACE['winners']} winner(s)")
        print("Verify: SELECT booking_id, COUNT(*) FROM booking_applications")
        print("        WHERE status = 'ACCEPTED' GROUP BY booking_id HAVING COUNT(*) > 1;")
        print("Should return no rows\n")


class SelectionRaceUser(HttpUser):
    """
    TEST 1: Many selection calls against one booking at once.

    Run: locust -f locustfile.py --tags selection -u 50 -r 50 --run-time 30s

    Exactly one select per booking returns 200; the rest must be 400
    invalid_state/booking_locked. Anything else is a failure.
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        with RACE_LOCK:
            if RACE["booking_id"] is None:
                start_race_round(self.client)

    @tag("selection")
    @task
    def race_select(self):
        booking_id = RACE["booking_id"]
        if not booking_id or not RACE["application_ids"]:
            return

        with self.client.post(
            f"/api/v1/bookings/{booking_id}/select",
            json={"application_id": random.choice(RACE["application_ids"])},
            headers=RACE["headers"],
            name="/api/v1/bookings/{id}/select",
            catch_response=True,
        ) as resp:
            if resp.status_code == 200:
                with RACE_LOCK:
                    RACE["winners"] += 1
                    if RACE["winners"] > 1:
                        resp.failure(f"Second winner on booking {booking_id}")
                        return
                resp.success()
            elif resp.status_code == 400 and resp.json().get("code") == "booking_locked":
                resp.success()  # Expected: someone else won
            else:
                resp.failure(f"Unexpected: {resp.status_code} {resp.text}")

    @tag("selection")
    @task(1)
    def next_round(self):
        """Occasionally open a new round once the current one is decided."""
        with RACE_LOCK:
            if RACE["winners"] >= 1 and random.random() < 0.05:
                start_race_round(self.client)


class ThroughputUser(HttpUser):
    """
    TEST 2: Throughput - listing cache effectiveness

    Run twice:
      1. With Redis: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
      2. With REDIS_ENABLED=false, run again

    Compare avg latency, requests/sec and P95/P99.
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def list_bookings_cached(self):
        page = random.randint(1, 5)
        resp = self.client.get(f"/api/v1/bookings/?page={page}&pageSize=20",
                               name="/api/v1/bookings/ [cached]")
        if resp.status_code == 200:
            for row in resp.json().get("rows", []):
                if row["id"] not in BOOKING_IDS:
                    BOOKING_IDS.append(row["id"])

    @tag("throughput", "read")
    @task(3)
    def get_booking_detail(self):
        if BOOKING_IDS:
            self.client.get(f"/api/v1/bookings/{random.choice(BOOKING_IDS)}",
                            name="/api/v1/bookings/{id}")

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Bad input must map to 4xx, never 5xx.

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s
    """
    wait_time = between(0.5, 1.5)

    def on_start(self):
        self.headers = register_and_login(self.client, "client")

    def expect(self, resp, allowed):
        if resp.status_code in allowed:
            resp.success()
        else:
            resp.failure(f"Expected {allowed}, got {resp.status_code}")

    @tag("edge")
    @task
    def select_on_missing_booking(self):
        with self.client.post("/api/v1/bookings/999999/select", json={"application_id": 1},
                              headers=self.headers, catch_response=True) as resp:
            self.expect(resp, [404])

    @tag("edge")
    @task
    def booking_without_date(self):
        with self.client.post("/api/v1/bookings/", json={"location": "Nowhere"},
                              headers=self.headers, catch_response=True) as resp:
            self.expect(resp, [400])

    @tag("edge")
    @task
    def out_of_range_rating(self):
        with self.client.post("/api/v1/reviews/999999", json={"rating": 9},
                              headers=self.headers, catch_response=True) as resp:
            self.expect(resp, [400, 404])

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post("/api/v1/bookings/", data="not json at all",
                              headers=self.headers, catch_response=True) as resp:
            self.expect(resp, [400])

    @tag("edge")
    @task
    def missing_auth(self):
        with self.client.post("/api/v1/bookings/", json={"event_date": future_date()},
                              catch_response=True) as resp:
            self.expect(resp, [401])


class RealisticUser(HttpUser):
    """
    TEST 4: Mixed marketplace traffic, mostly browsing.

    Run: locust -f locustfile.py -u 200 -r 20 --run-time 120s
    """
    wait_time = between(1, 3)

    def on_start(self):
        self.headers = register_and_login(self.client, "client")

    @task(50)
    def browse_bookings(self):
        resp = self.client.get("/api/v1/bookings/?status=OPEN&pageSize=20")
        if resp.status_code == 200:
            for row in resp.json().get("rows", []):
                if row["id"] not in BOOKING_IDS:
                    BOOKING_IDS.append(row["id"])

    @task(20)
    def view_booking(self):
        if BOOKING_IDS:
            self.client.get(f"/api/v1/bookings/{random.choice(BOOKING_IDS)}",
                            name="/api/v1/bookings/{id}")

    @task(5)
    def my_bookings(self):
        if self.headers:
            self.client.get("/api/v1/bookings/mine", headers=self.headers)

    @task(3)
    def post_booking(self):
        if self.headers:
            resp = self.client.post("/api/v1/bookings/", json={
                "event_date": future_date(),
                "location": random.choice(["Brooklyn", "Queens", "Harlem"]),
                "event_type": random.choice(["Wedding", "Portrait", "Corporate"]),
            }, headers=self.headers)
            if resp.status_code == 201:
                BOOKING_IDS.append(resp.json()["id"])
