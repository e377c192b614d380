from datetime import date

import pytest

from conftest import make_member
from models import AttendanceRecord, StorageError, ValidationError
from repository import AttendanceRepository, IncomeRepository, UsersRepository


def test_add_member_assigns_sequential_ids(users):
    first = make_member(users, "Ana")
    second = make_member(users, "Beto")
    assert (first.id, second.id) == (1, 2)
    assert first.status == "active"
    assert first.created_at


def test_new_id_is_one_more_than_the_highest(users):
    make_member(users, "Ana")
    make_member(users, "Beto")
    users.delete(1)
    assert make_member(users, "Caro").id == 3


def test_members_are_persisted(store, users):
    make_member(users, "Ana", document="123")
    reloaded = UsersRepository(store)
    assert len(reloaded) == 1
    assert reloaded.get("1").document == "123"


@pytest.mark.parametrize(
    "fields",
    [
        {"name": ""},
        {"phone": "123"},
        {"phone": "2001234567"},
        {"emergency_phone": ""},
    ],
)
def test_invalid_member_is_rejected_without_changes(store, users, fields):
    with pytest.raises(ValidationError) as excinfo:
        make_member(users, **fields)
    assert excinfo.value.errors
    assert len(users) == 0
    assert store.get("users") == []


def test_phone_with_separators_is_accepted(users):
    member = make_member(users, phone="300 123-4567")
    assert member.phone == "300 123-4567"


def test_update_member(users):
    make_member(users, "Ana")
    updated = users.update(1, name="Ana María", status="inactive")
    assert updated.name == "Ana María"
    assert users.get(1).status == "inactive"
    assert users.active() == []
    assert users.selectable() == []


def test_update_validates_only_given_phones(users):
    make_member(users, "Ana")
    users.update(1, eps="Sura")
    with pytest.raises(ValidationError):
        users.update(1, phone="555")
    assert users.get(1).phone == "3001234567"


def test_update_missing_member(users):
    with pytest.raises(ValidationError):
        users.update(99, name="Nadie")


def test_delete_member_keeps_attendance_and_payments(store, users, attendance, income):
    member = make_member(users, "Ana")
    attendance.save_day("2024-01-10", [member.id])
    income.add(member.id, "2024-01-01", "2024-01-31", "Mensualidad", 100000)

    assert users.delete(member.id) is True
    assert users.delete(member.id) is False

    assert len(AttendanceRepository(store)) == 1
    assert len(IncomeRepository(store)) == 1
    assert users.display_name(member.id) == "Usuario eliminado"


def test_search_by_name_document_or_phone(users):
    make_member(users, "Laura Gómez", document="1020")
    make_member(users, "Andrés Pérez", phone="3109876543")
    assert [m.name for m in users.search("laura")] == ["Laura Gómez"]
    assert [m.name for m in users.search("1020")] == ["Laura Gómez"]
    assert [m.name for m in users.search("310987")] == ["Andrés Pérez"]
    assert len(users.search("")) == 2


def test_upcoming_birthdays(users):
    make_member(users, "Ana", birthdate="1990-01-16")
    make_member(users, "Beto", birthdate="1985-01-15")
    make_member(users, "Caro", birthdate="1992-03-01")
    make_member(users, "Dani")
    result = users.upcoming_birthdays(days=3, today=date(2024, 1, 15))
    assert [(m.name, days) for m, days in result] == [("Beto", 0), ("Ana", 1)]


def test_save_day_replaces_previous_roll_call(store, attendance):
    assert attendance.save_day("2024-01-10", [1, 2]) == 2
    attendance.save_day("2024-01-11", [1])
    assert attendance.save_day("2024-01-10", ["2"]) == 1

    assert attendance.present_on("2024-01-10") == {"2"}
    assert attendance.present_on("2024-01-11") == {"1"}
    reloaded = AttendanceRepository(store)
    assert len(reloaded) == 2
    assert len({r.id for r in reloaded.all()}) == 2


def test_save_day_normalizes_the_date(attendance):
    attendance.save_day("15/01/2024", [1])
    assert attendance.present_on("2024-01-15") == {"1"}


def test_save_day_rejects_invalid_date(attendance):
    with pytest.raises(ValidationError):
        attendance.save_day("someday", [1])
    assert len(attendance) == 0


def test_add_single_attendance_record(attendance):
    assert attendance.add(AttendanceRecord(id=7, member_id="3", date="2024-01-05")) is True
    assert attendance.filter_by_member(3)[0].id == 7


def test_filter_by_date_range_is_inclusive(attendance):
    for day in ("2024-01-01", "2024-01-15", "2024-01-31", "2024-02-01"):
        attendance.save_day(day, [1])
    within = attendance.filter_by_date_range("2024-01-01", "2024-01-31")
    assert sorted(r.date for r in within) == ["2024-01-01", "2024-01-15", "2024-01-31"]
    assert len(attendance.filter_by_date_range("2024-01-01", None)) == 4


def test_add_payment(store, income):
    record = income.add("4", "2024-01-01", "2024-01-31", "Mensualidad", "120000.4", payment_date="2024-01-01")
    assert record.member_id == "4"
    assert record.amount == 120000.4
    assert IncomeRepository(store).get(record.id).end_date == "2024-01-31"


def test_payments_added_in_a_burst_get_unique_ids(income):
    ids = {income.add(1, "2024-01-01", "2024-01-31", "Mensualidad", 1).id for _ in range(5)}
    assert len(ids) == 5


@pytest.mark.parametrize(
    "member_id, amount, start, end",
    [
        ("", 1000, "2024-01-01", "2024-01-31"),
        (1, "abc", "2024-01-01", "2024-01-31"),
        (1, -5, "2024-01-01", "2024-01-31"),
        (1, float("nan"), "2024-01-01", "2024-01-31"),
        (1, 1000, "", "2024-01-31"),
        (1, 1000, "2024-02-01", "2024-01-31"),
    ],
)
def test_invalid_payment_is_rejected(income, member_id, amount, start, end):
    with pytest.raises(ValidationError):
        income.add(member_id, start, end, "Mensualidad", amount)
    assert len(income) == 0


def test_income_total_and_range(income):
    income.add(1, "2024-01-01", "2024-01-31", "Mensualidad", 100000, payment_date="2024-01-01")
    income.add(2, "2024-01-01", "2024-01-15", "Quincena", 55000.5, payment_date="2024-01-20")
    income.add(3, "2024-02-01", "2024-02-28", "Mensualidad", 100000, payment_date="2024-02-01")
    january = income.filter_by_date_range("2024-01-01", "2024-01-31")
    assert IncomeRepository.total(january) == 155000.5
    assert IncomeRepository.total(income.all()) == 255000.5


def test_last_attendance(attendance):
    attendance.save_day("2024-01-03", [1, 2])
    attendance.save_day("2024-01-09", [1])
    attendance.add(AttendanceRecord(id=1, member_id="1", date="2024-01-20", status="ausente"))
    assert attendance.last_attendance(1) == "2024-01-09"
    assert attendance.last_attendance("2") == "2024-01-03"
    assert attendance.last_attendance(3) is None


def test_roll_call_from_filtered_list_keeps_hidden_members(attendance):
    attendance.save_day("2024-01-10", [1, 2, 3])
    # only member 1 and 4 are on screen; 1 is unchecked, 4 is checked
    saved = attendance.save_shown("2024-01-10", shown_ids=[1, 4], checked_ids=[4])
    assert saved == 3
    assert attendance.present_on("2024-01-10") == {"2", "3", "4"}


def test_roll_call_with_everyone_shown_matches_save_day(attendance):
    attendance.save_day("2024-01-10", [1, 2])
    attendance.save_shown("2024-01-10", shown_ids=[1, 2], checked_ids=[1])
    assert attendance.present_on("2024-01-10") == {"1"}


def test_failed_write_on_add_member_is_reported(store, users, break_writes):
    break_writes()
    with pytest.raises(StorageError):
        make_member(users, "Ana")
    assert store.get("users", "nothing") == "nothing"


def test_failed_write_on_update_and_delete_is_reported(store, users, break_writes):
    make_member(users, "Ana")
    break_writes()
    with pytest.raises(StorageError):
        users.update(1, name="Ana María")
    with pytest.raises(StorageError):
        users.delete(1)
    assert UsersRepository(store).get(1).name == "Ana"


def test_failed_write_on_roll_call_and_payment_is_reported(attendance, income, break_writes):
    break_writes()
    with pytest.raises(StorageError):
        attendance.save_day("2024-01-10", [1])
    with pytest.raises(StorageError):
        income.add(1, "2024-01-01", "2024-01-31", "Mensualidad", 1000)
