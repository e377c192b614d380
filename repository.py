"""
repository.py
In-memory collections mirrored to the record store: users, attendance, income.

Each repository owns its list; writes go back to the store as one JSON array.
References between collections (userId) are not enforced: deleting a member
leaves its attendance and payments in place.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date

import db
from dates import normalize_date, today_iso
from models import (
    DELETED_MEMBER_NAME,
    PRESENT,
    AttendanceRecord,
    Member,
    PaymentRecord,
    StorageError,
    ValidationError,
    member_key,
)
from utils import days_until_birthday, filter_list, next_member_id, now_iso, now_ms, validate_member_inputs, validate_payment_inputs

logger = logging.getLogger(__name__)


class RecordCollection:
    key: str = ""
    record_type = None
    date_field = "date"

    def __init__(self, store: db.RecordStore):
        self.store = store
        self.records: list = []
        self.reload()

    def reload(self) -> None:
        """Replace the in-memory list with what the store holds (after import/restore)."""
        records = []
        for data in self.store.get(self.key, []):
            try:
                records.append(self.record_type.from_dict(data))
            except (TypeError, ValueError, AttributeError):
                logger.warning("Skipping unreadable %s record: %r", self.key, data)
        self.records = records

    def save(self) -> bool:
        return self.store.set(self.key, [r.to_dict() for r in self.records])

    def commit(self) -> None:
        """Like save(), but a rejected write raises StorageError."""
        if not self.save():
            raise StorageError("No se pudieron guardar los datos. Intente de nuevo.")

    def all(self) -> list:
        return list(self.records)

    def get(self, record_id):
        key = member_key(record_id)
        return next((r for r in self.records if str(r.id) == key), None)

    def delete(self, record_id) -> bool:
        key = member_key(record_id)
        before = len(self.records)
        self.records = [r for r in self.records if str(r.id) != key]
        if len(self.records) == before:
            return False
        self.commit()
        return True

    def filter_by_member(self, member_id) -> list:
        key = member_key(member_id)
        return [r for r in self.records if r.member_id == key]

    def filter_by_date_range(self, start: str | None, end: str | None) -> list:
        """Inclusive range; both ends are needed for the filter to apply."""
        if not start or not end:
            return list(self.records)
        return [r for r in self.records if start <= normalize_date(getattr(r, self.date_field)) <= end]

    def __len__(self) -> int:
        return len(self.records)


class UsersRepository(RecordCollection):
    key = db.USERS
    record_type = Member

    def add(self, **fields) -> Member:
        errors = validate_member_inputs(fields.get("name", ""), fields.get("phone", ""), fields.get("emergency_phone", ""))
        if errors:
            raise ValidationError(errors)
        fields.setdefault("created_at", now_iso())
        member = Member(id=next_member_id(m.id for m in self.records), **fields)
        self.records.append(member)
        self.commit()
        return member

    def update(self, member_id, **fields) -> Member:
        member = self.get(member_id)
        if member is None:
            raise ValidationError("El usuario no existe.")
        errors = validate_member_inputs(
            fields.get("name", member.name),
            fields.get("phone", ""),
            fields.get("emergency_phone", ""),
            require_phones=False,
        )
        if errors:
            raise ValidationError(errors)
        updated = replace(member, **fields)
        self.records = [updated if m.id == member.id else m for m in self.records]
        self.commit()
        return updated

    def active(self) -> list[Member]:
        return [m for m in self.records if m.status == "active"]

    def selectable(self) -> list[Member]:
        """Members offered in pickers (everyone not marked inactive)."""
        return [m for m in self.records if m.status != "inactive"]

    def search(self, text: str) -> list[Member]:
        return filter_list(self.records, text, ["name", "document", "phone"])

    def display_name(self, member_id) -> str:
        member = self.get(member_id)
        return member.name if member else DELETED_MEMBER_NAME

    def upcoming_birthdays(self, days: int = 3, today: date | None = None) -> list[tuple[Member, int]]:
        result = []
        for member in self.records:
            until = days_until_birthday(member.birthdate, today)
            if until is not None and until <= days:
                result.append((member, until))
        result.sort(key=lambda pair: pair[1])
        return result


class AttendanceRepository(RecordCollection):
    key = db.ATTENDANCE
    record_type = AttendanceRecord

    def add(self, record: AttendanceRecord) -> bool:
        self.records.append(record)
        return self.save()

    def save_day(self, day: str, member_ids) -> int:
        """
        Store the roll call for one date: every previous record of that date is
        dropped and a 'presente' record is written per member. Returns the count.
        """
        day = normalize_date(day)
        if not day:
            raise ValidationError("Seleccione una fecha válida.")
        registered = now_iso()
        self.records = [r for r in self.records if normalize_date(r.date) != day]
        base = max([now_ms()] + [r.id + 1 for r in self.records])
        count = 0
        for member_id in member_ids:
            self.records.append(
                AttendanceRecord(
                    id=base + count,
                    member_id=member_key(member_id),
                    date=day,
                    status=PRESENT,
                    registered_at=registered,
                )
            )
            count += 1
        self.commit()
        logger.info("Roll call for %s saved: %d present", day, count)
        return count

    def save_shown(self, day: str, shown_ids, checked_ids) -> int:
        """
        Roll call from a filtered list: members in ``shown_ids`` are marked per
        ``checked_ids``, everyone else keeps their mark for that date.
        """
        shown = {member_key(i) for i in shown_ids}
        kept = sorted(k for k in self.present_on(day) if k not in shown)
        return self.save_day(day, kept + [member_key(i) for i in checked_ids])

    def present_on(self, day: str) -> set[str]:
        day = normalize_date(day)
        return {r.member_id for r in self.records if r.status == PRESENT and normalize_date(r.date) == day}

    def last_attendance(self, member_id) -> str | None:
        days = [normalize_date(r.date) for r in self.filter_by_member(member_id) if r.status == PRESENT]
        days = [d for d in days if d]
        return max(days) if days else None


class IncomeRepository(RecordCollection):
    key = db.INCOME
    record_type = PaymentRecord
    date_field = "payment_date"

    def add(
        self,
        member_id,
        start_date: str,
        end_date: str,
        payment_type: str,
        amount,
        description: str = "",
        payment_date: str | None = None,
    ) -> PaymentRecord:
        errors = validate_payment_inputs(member_key(member_id), amount, start_date, end_date)
        if errors:
            raise ValidationError(errors)
        record = PaymentRecord(
            id=now_ms(),
            member_id=member_key(member_id),
            payment_date=payment_date or today_iso(),
            start_date=start_date,
            end_date=end_date,
            payment_type=payment_type,
            amount=round(float(amount), 2),
            description=description,
            registered_at=now_iso(),
        )
        # ids are millisecond stamps; keep them unique when added in a burst
        while self.get(record.id) is not None:
            record = replace(record, id=record.id + 1)
        self.records.append(record)
        self.commit()
        logger.info("Payment %s registered for member %s", record.id, record.member_id)
        return record

    @staticmethod
    def total(records) -> float:
        return round(sum(r.amount for r in records), 2)
