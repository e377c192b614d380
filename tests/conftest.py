import sqlite3
from datetime import date

import pytest

import db
from models import AttendanceRecord, PaymentRecord
from repository import AttendanceRepository, IncomeRepository, UsersRepository


@pytest.fixture
def store(tmp_path):
    return db.RecordStore(tmp_path / "gym_test.db")


@pytest.fixture
def users(store):
    return UsersRepository(store)


@pytest.fixture
def attendance(store):
    return AttendanceRepository(store)


@pytest.fixture
def income(store):
    return IncomeRepository(store)


def make_member(users, name="Test User", **kwargs):
    fields = {
        "name": name,
        "phone": "3001234567",
        "emergency_phone": "3017654321",
        "class_time": "6:00 am",
        "affiliation_type": "Mensualidad",
    }
    fields.update(kwargs)
    return users.add(**fields)


def pay(member_id, end_date, payment_date="2024-01-01", id=1, payment_type="Mensualidad", amount=100000.0):
    return PaymentRecord(
        id=id,
        member_id=str(member_id),
        payment_date=payment_date,
        start_date=payment_date,
        end_date=end_date,
        payment_type=payment_type,
        amount=amount,
    )


def att(member_id, day, status="presente", id=1):
    if isinstance(day, date):
        day = day.isoformat()
    return AttendanceRecord(id=id, member_id=str(member_id), date=day, status=status)


@pytest.fixture
def break_writes(monkeypatch):
    """Call the returned function to make every later store write fail as a locked database would."""

    def fail(*args, **kwargs):
        raise sqlite3.OperationalError("database is locked")

    return lambda: monkeypatch.setattr(db, "execute", fail)
