"""
membership.py
Membership standing and consecutive-absence detection.

Both are pure functions of the record lists handed in; nothing is cached.
Pass ``today`` to evaluate at a fixed date (defaults to date.today()).
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable

from dates import normalize_date, parse_date
from models import (
    ABSENCE_THRESHOLD_DAYS,
    ABSENCE_WINDOW_DAYS,
    EXPIRING_SOON_DAYS,
    NO_PAYMENT_DAYS,
    PRESENT,
    AbsenceAlert,
    AbsenceStreak,
    AttendanceRecord,
    Member,
    MembershipStatus,
    PaymentRecord,
    member_key,
)

BADGE_BY_URGENCY = {
    "none": "danger",
    "current": "success",
    "expiring": "warning",
    "expired_recent": "warning",
    "expired_long": "danger",
}


def _payment_sort_key(payment: PaymentRecord) -> tuple[str, int]:
    # Same payment date: the highest id (most recently registered) wins
    return normalize_date(payment.payment_date), payment.id


def latest_payment(member_id, payments: Iterable[PaymentRecord]) -> PaymentRecord | None:
    key = member_key(member_id)
    matching = [p for p in payments if p.member_id == key]
    if not matching:
        return None
    return max(matching, key=_payment_sort_key)


def present_dates(attendance: Iterable[AttendanceRecord], member_id) -> set[str]:
    """ISO dates on which the member has a 'presente' record."""
    key = member_key(member_id)
    dates = set()
    for record in attendance:
        if record.member_id == key and record.status == PRESENT:
            day = normalize_date(record.date)
            if day:
                dates.add(day)
    return dates


def get_membership_status(
    member_id,
    payments: Iterable[PaymentRecord],
    attendance: Iterable[AttendanceRecord],
    today: date | None = None,
) -> MembershipStatus:
    today = today or date.today()
    last = latest_payment(member_id, payments)
    if last is None:
        return MembershipStatus(
            has_membership=False,
            status="Sin pago",
            end_date=None,
            expired=True,
            days_expired=NO_PAYMENT_DAYS,
            attendance_after_expiry=0,
            payment_type="Ninguno",
        )

    payment_type = last.payment_type or "Sin tipo"
    end_iso = normalize_date(last.end_date)
    end = parse_date(end_iso)
    if end is None:
        return MembershipStatus(
            has_membership=True,
            status="Sin fecha de vencimiento",
            end_date=None,
            expired=True,
            days_expired=NO_PAYMENT_DAYS,
            attendance_after_expiry=0,
            payment_type=payment_type,
        )

    delta = (today - end).days
    days_expired = max(0, delta)
    days_left = max(0, -delta)
    if delta > 0:
        label, expired = f"Vencida hace {days_expired} días", True
    elif delta == 0:
        label, expired = "Vence hoy", True
    elif days_left <= EXPIRING_SOON_DAYS:
        label, expired = f"Vence en {days_left} días", False
    else:
        label, expired = "Vigente", False

    key = member_key(member_id)
    after_expiry = sum(
        1
        for record in attendance
        if record.member_id == key and record.status == PRESENT and normalize_date(record.date) > end_iso
    )

    return MembershipStatus(
        has_membership=True,
        status=label,
        end_date=end_iso,
        expired=expired,
        days_expired=days_expired,
        attendance_after_expiry=after_expiry,
        payment_type=payment_type,
        days_left=days_left,
    )


def membership_badge(status: MembershipStatus) -> str:
    """Badge colour for a status: success, warning or danger."""
    return BADGE_BY_URGENCY[status.urgency]


def find_absence_streak(
    attendance: Iterable[AttendanceRecord],
    member_id,
    window_days: int = ABSENCE_WINDOW_DAYS,
    today: date | None = None,
) -> AbsenceStreak:
    """
    Longest run of days without a 'presente' record, scanning back from today
    (inclusive) over ``window_days`` days.
    """
    today = today or date.today()
    attended = present_dates(attendance, member_id)

    current = longest = 0
    current_end = longest_start = longest_end = None
    for offset in range(window_days):
        day = (today - timedelta(days=offset)).isoformat()
        if day in attended:
            current = 0
            continue
        if current == 0:
            current_end = day
        current += 1
        if current > longest:
            # scanning backwards: the day just counted is the earliest of the run
            longest, longest_start, longest_end = current, day, current_end

    return AbsenceStreak(
        member_id=member_key(member_id),
        longest=longest,
        start_date=longest_start,
        end_date=longest_end,
        last_attendance=max(attended) if attended else None,
    )


def has_consecutive_absences(
    attendance: Iterable[AttendanceRecord],
    member_id,
    threshold_days: int = ABSENCE_THRESHOLD_DAYS,
    window_days: int = ABSENCE_WINDOW_DAYS,
    today: date | None = None,
) -> bool:
    streak = find_absence_streak(attendance, member_id, window_days=window_days, today=today)
    return streak.longest >= threshold_days


def absence_alerts(
    members: Iterable[Member],
    attendance: list[AttendanceRecord],
    payments: list[PaymentRecord],
    threshold_days: int = ABSENCE_THRESHOLD_DAYS,
    window_days: int = ABSENCE_WINDOW_DAYS,
    today: date | None = None,
) -> list[AbsenceAlert]:
    """Active, non-coach members whose longest streak reaches the threshold, worst first."""
    alerts = []
    for member in members:
        if not member.is_active or member.is_coach:
            continue
        streak = find_absence_streak(attendance, member.id, window_days=window_days, today=today)
        if streak.longest < threshold_days:
            continue
        status = get_membership_status(member.id, payments, attendance, today=today)
        alerts.append(AbsenceAlert(member=member, streak=streak, membership=status))

    alerts.sort(key=lambda a: a.consecutive_absences, reverse=True)
    return alerts
