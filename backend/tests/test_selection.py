"""
Tests for the selection transaction.

The invariants under test: at most one ACCEPTED application per booking,
the booking's photographer always matches it, and a rejected call changes
nothing.
"""

import asyncio

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from photomarket.core.exceptions import InvalidStateError
from photomarket.core.security import Role
from photomarket.domain.application_state import ApplicationStatus
from photomarket.domain.booking_state import BookingStatus
from photomarket.models import Booking, BookingApplication
from photomarket.services import selection_service
from tests.conftest import create_actor, create_application, create_booking


async def load_state(session_factory, booking_id: int):
    async with session_factory() as session:
        booking = await session.get(Booking, booking_id)
        result = await session.execute(
            select(BookingApplication)
            .where(BookingApplication.booking_id == booking_id)
            .order_by(BookingApplication.id)
        )
        return booking, {a.id: a.status for a in result.scalars().all()}


async def accepted_count(session_factory, booking_id: int) -> int:
    async with session_factory() as session:
        result = await session.execute(
            select(func.count(BookingApplication.id)).where(
                BookingApplication.booking_id == booking_id,
                BookingApplication.status == ApplicationStatus.ACCEPTED.value,
            )
        )
        return result.scalar_one()


@pytest.mark.asyncio
async def test_select_locks_booking_and_rejects_siblings(
    client: AsyncClient, session_factory, client_actor, photographer_a, open_booking, two_applications
):
    """Selecting locks the booking and rejects the other pending applications."""
    app_a, app_b = two_applications

    response = await client.post(
        f"/api/v1/bookings/{open_booking.id}/select",
        json={"application_id": app_a.id},
        headers=client_actor.headers,
    )
    assert response.status_code == 200
    assert response.json() == {
        "booking_id": open_booking.id,
        "status": "LOCKED",
        "photographer_id": photographer_a.profile_id,
        "selected_application_id": app_a.id,
        "rejected_count": 1,
    }

    booking, statuses = await load_state(session_factory, open_booking.id)
    assert booking.status == "LOCKED"
    assert booking.photographer_id == photographer_a.profile_id
    assert statuses == {app_a.id: "ACCEPTED", app_b.id: "REJECTED"}


@pytest.mark.asyncio
async def test_second_selection_fails_and_changes_nothing(
    client: AsyncClient, session_factory, client_actor, photographer_a, open_booking, two_applications
):
    """A second selection is refused and leaves every row as it was."""
    app_a, app_b = two_applications
    url = f"/api/v1/bookings/{open_booking.id}/select"
    await client.post(url, json={"application_id": app_a.id}, headers=client_actor.headers)
    before = await load_state(session_factory, open_booking.id)

    response = await client.post(url, json={"application_id": app_b.id}, headers=client_actor.headers)
    assert response.status_code == 400
    assert response.json()["kind"] == "invalid_state"
    assert response.json()["code"] == "booking_locked"

    booking, statuses = await load_state(session_factory, open_booking.id)
    assert booking.photographer_id == photographer_a.profile_id
    assert booking.version == before[0].version
    assert statuses == before[1]


@pytest.mark.asyncio
async def test_select_in_review_booking(client: AsyncClient, session_factory, client_actor, photographer_a):
    """IN_REVIEW bookings are still selectable."""
    booking = await create_booking(session_factory, client_actor.profile_id, status=BookingStatus.IN_REVIEW)
    application = await create_application(session_factory, booking.id, photographer_a.profile_id)

    response = await client.post(
        f"/api/v1/bookings/{booking.id}/select",
        json={"application_id": application.id},
        headers=client_actor.headers,
    )
    assert response.status_code == 200
    assert response.json()["rejected_count"] == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [BookingStatus.COMPLETED, BookingStatus.CANCELLED])
async def test_select_closed_booking(client: AsyncClient, session_factory, client_actor, photographer_a, status):
    """Completed and cancelled bookings are not selectable."""
    photographer_id = photographer_a.profile_id if status is BookingStatus.COMPLETED else None
    booking = await create_booking(
        session_factory, client_actor.profile_id, status=status, photographer_id=photographer_id
    )
    application = await create_application(session_factory, booking.id, photographer_a.profile_id)

    response = await client.post(
        f"/api/v1/bookings/{booking.id}/select",
        json={"application_id": application.id},
        headers=client_actor.headers,
    )
    assert response.status_code == 400
    assert response.json()["code"] == "booking_closed"


@pytest.mark.asyncio
async def test_select_unknown_application(client: AsyncClient, client_actor, open_booking):
    """Unknown application returns 404."""
    response = await client.post(
        f"/api/v1/bookings/{open_booking.id}/select",
        json={"application_id": 9999},
        headers=client_actor.headers,
    )
    assert response.status_code == 404
    assert response.json()["code"] == "application_not_found"


@pytest.mark.asyncio
async def test_select_application_from_other_booking(
    client: AsyncClient, session_factory, client_actor, photographer_a, open_booking
):
    """An application from another booking is refused without side effects."""
    other = await create_booking(session_factory, client_actor.profile_id)
    foreign = await create_application(session_factory, other.id, photographer_a.profile_id)

    response = await client.post(
        f"/api/v1/bookings/{open_booking.id}/select",
        json={"application_id": foreign.id},
        headers=client_actor.headers,
    )
    assert response.status_code == 400
    assert response.json()["kind"] == "validation_error"
    assert response.json()["code"] == "application_wrong_booking"

    booking, statuses = await load_state(session_factory, open_booking.id)
    assert booking.status == "OPEN"
    _, other_statuses = await load_state(session_factory, other.id)
    assert other_statuses == {foreign.id: "PENDING"}


@pytest.mark.asyncio
async def test_select_settled_application(client: AsyncClient, session_factory, client_actor, photographer_a, open_booking):
    """Rejected applications cannot be accepted."""
    rejected = await create_application(
        session_factory, open_booking.id, photographer_a.profile_id, status=ApplicationStatus.REJECTED
    )
    response = await client.post(
        f"/api/v1/bookings/{open_booking.id}/select",
        json={"application_id": rejected.id},
        headers=client_actor.headers,
    )
    assert response.status_code == 400
    assert response.json()["kind"] == "invalid_state"
    assert response.json()["code"] == "application_not_pending"

    booking, _ = await load_state(session_factory, open_booking.id)
    assert booking.status == "OPEN"
    assert booking.photographer_id is None


@pytest.mark.asyncio
async def test_select_missing_application_id(client: AsyncClient, client_actor, open_booking):
    """Missing application_id returns 400."""
    response = await client.post(
        f"/api/v1/bookings/{open_booking.id}/select", json={}, headers=client_actor.headers
    )
    assert response.status_code == 400
    assert response.json()["kind"] == "validation_error"


@pytest.mark.asyncio
async def test_select_missing_booking(client: AsyncClient, client_actor):
    """Selecting on an unknown booking returns 404."""
    response = await client.post(
        "/api/v1/bookings/9999/select", json={"application_id": 1}, headers=client_actor.headers
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_select_requires_owner(client: AsyncClient, other_client, photographer_a, open_booking, two_applications):
    """Only the owning client or admin can select."""
    app_a, _ = two_applications
    url = f"/api/v1/bookings/{open_booking.id}/select"

    response = await client.post(url, json={"application_id": app_a.id}, headers=other_client.headers)
    assert response.status_code == 403

    response = await client.post(url, json={"application_id": app_a.id}, headers=photographer_a.headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_admin_can_select(client: AsyncClient, admin_actor, open_booking, two_applications):
    """Admins can select on any booking."""
    _, app_b = two_applications
    response = await client.post(
        f"/api/v1/bookings/{open_booking.id}/select",
        json={"application_id": app_b.id},
        headers=admin_actor.headers,
    )
    assert response.status_code == 200
    assert response.json()["selected_application_id"] == app_b.id


@pytest.mark.asyncio
async def test_applications_after_lock_are_refused(
    client: AsyncClient, session_factory, client_actor, photographer_a, open_booking, two_applications
):
    """New photographers cannot apply once the booking is locked."""
    app_a, _ = two_applications
    await client.post(
        f"/api/v1/bookings/{open_booking.id}/select",
        json={"application_id": app_a.id},
        headers=client_actor.headers,
    )
    latecomer = await create_actor(session_factory, Role.PHOTOGRAPHER, "Lee Latecomer", "lee@example.com")

    response = await client.post(
        f"/api/v1/bookings/{open_booking.id}/applications", headers=latecomer.headers
    )
    assert response.status_code == 400
    assert response.json()["code"] == "booking_not_open"
    assert await accepted_count(session_factory, open_booking.id) == 1


@pytest.mark.asyncio
async def test_concurrent_selection_single_winner(
    session_factory, client_actor, photographer_a, photographer_b, open_booking, two_applications
):
    """Two racing selections for different applications: exactly one wins."""
    app_a, app_b = two_applications

    async def attempt(application_id):
        async with session_factory() as session:
            return await selection_service.select_application(
                session, client_actor.identity, open_booking.id, application_id
            )

    results = await asyncio.gather(attempt(app_a.id), attempt(app_b.id), return_exceptions=True)

    winners = [r for r in results if isinstance(r, dict)]
    losers = [r for r in results if isinstance(r, Exception)]
    assert len(winners) == 1
    assert len(losers) == 1
    assert isinstance(losers[0], InvalidStateError)
    assert losers[0].code == "booking_locked"

    winner = winners[0]
    booking, statuses = await load_state(session_factory, open_booking.id)
    assert booking.status == "LOCKED"
    assert booking.photographer_id == winner["photographer_id"]
    assert statuses[winner["selected_application_id"]] == "ACCEPTED"
    assert sorted(statuses.values()) == ["ACCEPTED", "REJECTED"]


@pytest.mark.asyncio
async def test_concurrent_selection_same_application(session_factory, client_actor, open_booking, two_applications):
    """Racing selections of the same application: exactly one wins."""
    app_a, _ = two_applications

    async def attempt():
        async with session_factory() as session:
            return await selection_service.select_application(
                session, client_actor.identity, open_booking.id, app_a.id
            )

    results = await asyncio.gather(*(attempt() for _ in range(4)), return_exceptions=True)

    assert sum(isinstance(r, dict) for r in results) == 1
    assert all(isinstance(r, InvalidStateError) for r in results if not isinstance(r, dict))
    assert await accepted_count(session_factory, open_booking.id) == 1


@pytest.mark.asyncio
async def test_repeated_selection_attempts_keep_one_accepted(
    client: AsyncClient, session_factory, client_actor, photographer_a, photographer_b, open_booking, two_applications
):
    """Repeated attempts never produce a second ACCEPTED application."""
    app_a, app_b = two_applications
    url = f"/api/v1/bookings/{open_booking.id}/select"

    for application_id in (app_b.id, app_a.id, app_b.id, 9999, app_a.id):
        await client.post(url, json={"application_id": application_id}, headers=client_actor.headers)
        assert await accepted_count(session_factory, open_booking.id) <= 1

    booking, statuses = await load_state(session_factory, open_booking.id)
    assert booking.photographer_id == photographer_b.profile_id
    assert statuses[app_b.id] == "ACCEPTED"
