"""
models.py
Lightweight domain helpers (constants, dataclasses, errors).

Records are stored with the camelCase keys of the storage format
(userId, paymentDate, ...); attributes are snake_case.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

# Class slots offered by the gym
CLASS_TIMES = ["5:00 am", "6:00 am", "7:00 am", "8:00 am", "4:00 pm", "5:30 pm", "6:30 pm", "7:30 pm"]

COACH_AFFILIATION = "Entrenador(a)"
PACKAGE_AFFILIATION = "paquete 10 clases"
AFFILIATION_TYPES = ["Mensualidad", "Quincena", PACKAGE_AFFILIATION, "Clase suelta", COACH_AFFILIATION]

PAYMENT_TYPES = ["Mensualidad", "Quincena", "Paquete 10 clases", "Clase suelta"]

MEMBER_STATUSES = ("active", "inactive")
PRESENT = "presente"

ABSENCE_THRESHOLD_DAYS = 3
ABSENCE_WINDOW_DAYS = 30
EXPIRING_SOON_DAYS = 3
RECENTLY_EXPIRED_DAYS = 7
# days_expired reported when a member has no usable payment
NO_PAYMENT_DAYS = 999

DELETED_MEMBER_NAME = "Usuario eliminado"


class ValidationError(ValueError):
    """Invalid user input; the operation is aborted without state changes."""

    def __init__(self, errors: list[str] | str):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class ImportFormatError(ValueError):
    """A workbook that cannot be imported at all (missing sheets, unreadable file)."""


class StorageError(RuntimeError):
    """The record store did not accept a write; memory and storage may now differ."""


def member_key(value) -> str:
    """
    Informal identifier matching: 3, "3", " 3 " and 3.0 all refer to the same member.
    Returns '' for missing values.
    """
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
    text = str(value).strip()
    if text.endswith(".0") and text[:-2].isdigit():
        text = text[:-2]
    return text


def _clean(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    return str(value)


@dataclass(frozen=True)
class Member:
    id: int
    name: str
    document: str = ""
    birthdate: str = ""
    phone: str = ""
    eps: str = ""
    rh: str = ""
    pathology: str = ""
    emergency_contact: str = ""
    emergency_phone: str = ""
    class_time: str = ""
    affiliation_type: str = ""
    status: str = "active"  # 'active' or 'inactive'
    created_at: str = ""

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    @property
    def is_coach(self) -> bool:
        return self.affiliation_type == COACH_AFFILIATION

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "document": self.document,
            "birthdate": self.birthdate,
            "phone": self.phone,
            "eps": self.eps,
            "rh": self.rh,
            "pathology": self.pathology,
            "emergencyContact": self.emergency_contact,
            "emergencyPhone": self.emergency_phone,
            "classTime": self.class_time,
            "affiliationType": self.affiliation_type,
            "status": self.status,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Member":
        return cls(
            id=int(member_key(data.get("id"))),
            name=_clean(data.get("name")),
            document=_clean(data.get("document")),
            birthdate=_clean(data.get("birthdate")),
            phone=_clean(data.get("phone")),
            eps=_clean(data.get("eps")),
            rh=_clean(data.get("rh")),
            pathology=_clean(data.get("pathology")),
            emergency_contact=_clean(data.get("emergencyContact")),
            emergency_phone=_clean(data.get("emergencyPhone")),
            class_time=_clean(data.get("classTime")),
            affiliation_type=_clean(data.get("affiliationType")),
            status=_clean(data.get("status")) or "active",
            created_at=_clean(data.get("createdAt")),
        )


@dataclass(frozen=True)
class AttendanceRecord:
    id: int
    member_id: str
    date: str
    status: str = PRESENT
    registered_at: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.member_id,
            "date": self.date,
            "status": self.status,
            "registeredAt": self.registered_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AttendanceRecord":
        return cls(
            id=int(member_key(data.get("id")) or 0),
            member_id=member_key(data.get("userId")),
            date=_clean(data.get("date")),
            status=_clean(data.get("status")) or PRESENT,
            registered_at=_clean(data.get("registeredAt")),
        )


@dataclass(frozen=True)
class PaymentRecord:
    id: int
    member_id: str
    payment_date: str
    start_date: str
    end_date: str
    payment_type: str = ""
    amount: float = 0.0
    description: str = ""
    registered_at: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.member_id,
            "paymentDate": self.payment_date,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "paymentType": self.payment_type,
            "amount": self.amount,
            "description": self.description,
            "registeredAt": self.registered_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PaymentRecord":
        try:
            amount = round(float(data.get("amount") or 0), 2)
        except (TypeError, ValueError):
            amount = 0.0
        if math.isnan(amount) or amount < 0:
            amount = 0.0
        return cls(
            id=int(member_key(data.get("id")) or 0),
            member_id=member_key(data.get("userId")),
            payment_date=_clean(data.get("paymentDate")),
            start_date=_clean(data.get("startDate")),
            end_date=_clean(data.get("endDate")),
            payment_type=_clean(data.get("paymentType")),
            amount=amount,
            description=_clean(data.get("description")),
            registered_at=_clean(data.get("registeredAt")),
        )


@dataclass(frozen=True)
class MembershipStatus:
    has_membership: bool
    status: str
    end_date: str | None
    expired: bool
    days_expired: int
    attendance_after_expiry: int
    payment_type: str
    days_left: int = 0

    @property
    def urgency(self) -> str:
        """none / current / expiring / expired_recent / expired_long"""
        if not self.has_membership:
            return "none"
        if self.expired:
            return "expired_recent" if self.days_expired <= RECENTLY_EXPIRED_DAYS else "expired_long"
        if self.days_left <= EXPIRING_SOON_DAYS:
            return "expiring"
        return "current"


@dataclass(frozen=True)
class AbsenceStreak:
    member_id: str
    longest: int
    start_date: str | None  # earliest day of the longest streak
    end_date: str | None  # most recent day of the longest streak
    last_attendance: str | None = None


@dataclass(frozen=True)
class AbsenceAlert:
    member: Member
    streak: AbsenceStreak
    membership: MembershipStatus

    @property
    def consecutive_absences(self) -> int:
        return self.streak.longest


@dataclass
class ImportSummary:
    accepted: dict = field(default_factory=lambda: {"Usuarios": 0, "Asistencias": 0, "Pagos": 0})
    rejected: dict = field(default_factory=lambda: {"Usuarios": 0, "Asistencias": 0, "Pagos": 0})

    @property
    def total_accepted(self) -> int:
        return sum(self.accepted.values())

    @property
    def total_rejected(self) -> int:
        return sum(self.rejected.values())
