import threading
from datetime import date, datetime, time

import pytest

from booking.core.exceptions import BookingConflictError
from booking.models.appointment import Appointment
from booking.models.branch import Branch, OperatingHours
from booking.models.consultant import Consultant
from booking.models.service import Service
from booking.schemas import CreateAppointmentRequest, CustomerDetails
from booking.scheduling import appointments as appointments_module
from booking.scheduling.appointments import create_appointment

MONDAY = date(2025, 6, 2)
NOW = datetime(2025, 6, 1, 8, 0)


def _seed(session_factory, consultants: int) -> tuple[int, int]:
    db = session_factory()
    try:
        branch = Branch(name='Sandton', city='Johannesburg', is_active=True)
        db.add(branch)
        db.flush()
        db.add(
            OperatingHours(
                branch_id=branch.id,
                day_of_week=MONDAY.weekday(),
                open_time=time(8, 0),
                close_time=time(17, 0),
                is_closed=False,
            )
        )
        for index in range(consultants):
            db.add(Consultant(branch_id=branch.id, first_name='Consultant', last_name=str(index + 1)))
        service = Service(name='Consultation', duration_minutes=30, is_active=True)
        db.add(service)
        db.commit()
        return branch.id, service.id
    finally:
        db.close()


def _request(branch_id: int, service_id: int, email: str) -> CreateAppointmentRequest:
    return CreateAppointmentRequest(
        branch_id=branch_id,
        service_id=service_id,
        appointment_date=MONDAY,
        start_time=time(10, 0),
        customer=CustomerDetails(first_name='Race', last_name='Runner', email=email, phone='+27821234567'),
    )


def _book_concurrently(session_factory, branch_id: int, service_id: int, emails: list[str]) -> list:
    """Run one booking per email in its own thread and session; return consultant ids or errors."""
    results = [None] * len(emails)

    def book(index: int, email: str) -> None:
        db = session_factory()
        try:
            appointment = create_appointment(db, _request(branch_id, service_id, email), now=NOW)
            results[index] = appointment.consultant_id
        except BookingConflictError as exc:
            results[index] = exc
        finally:
            db.close()

    threads = [threading.Thread(target=book, args=(index, email)) for index, email in enumerate(emails)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)

    return results


@pytest.fixture
def same_first_choice(monkeypatch: pytest.MonkeyPatch):
    """Make the first ``parties`` assignments wait for each other so they all pick the same consultant."""

    def install(parties: int) -> list[int]:
        barrier = threading.Barrier(parties)
        lock = threading.Lock()
        calls = []
        real_assign = appointments_module.assign_consultant

        def synchronized_assign(*args):
            consultant = real_assign(*args)
            with lock:
                calls.append(consultant.id)
                call_number = len(calls)
            if call_number <= parties:
                barrier.wait(timeout=10)
            return consultant

        monkeypatch.setattr(appointments_module, 'assign_consultant', synchronized_assign)
        return calls

    return install


def _count_appointments(session_factory) -> int:
    db = session_factory()
    try:
        return db.query(Appointment).count()
    finally:
        db.close()


def test_concurrent_bookings_for_last_consultant_admit_exactly_one(session_factory, same_first_choice) -> None:
    branch_id, service_id = _seed(session_factory, consultants=1)
    calls = same_first_choice(2)

    results = _book_concurrently(session_factory, branch_id, service_id, ['a@example.com', 'b@example.com'])

    successes = [result for result in results if isinstance(result, int)]
    failures = [result for result in results if isinstance(result, BookingConflictError)]
    assert len(successes) == 1
    assert len(failures) == 1
    assert calls[0] == calls[1]
    assert _count_appointments(session_factory) == 1


def test_concurrent_bookings_spread_across_free_consultants(session_factory, same_first_choice) -> None:
    branch_id, service_id = _seed(session_factory, consultants=2)
    same_first_choice(2)

    results = _book_concurrently(session_factory, branch_id, service_id, ['a@example.com', 'b@example.com'])

    assert all(isinstance(result, int) for result in results)
    assert len(set(results)) == 2

    db = session_factory()
    try:
        with pytest.raises(BookingConflictError):
            create_appointment(db, _request(branch_id, service_id, 'c@example.com'), now=NOW)
    finally:
        db.close()
    assert _count_appointments(session_factory) == 2


def test_one_more_concurrent_booking_than_consultants_admits_exactly_n(session_factory, same_first_choice) -> None:
    branch_id, service_id = _seed(session_factory, consultants=2)
    calls = same_first_choice(3)

    results = _book_concurrently(
        session_factory, branch_id, service_id, ['a@example.com', 'b@example.com', 'c@example.com'],
    )

    successes = [result for result in results if isinstance(result, int)]
    failures = [result for result in results if isinstance(result, BookingConflictError)]
    assert len(successes) == 2
    assert len(set(successes)) == 2
    assert len(failures) == 1
    assert len(set(calls[:3])) == 1
    assert _count_appointments(session_factory) == 2
