"""
reports.py
Dashboard numbers and the tabular reports (pandas DataFrames) plus their Excel export.
"""

from __future__ import annotations

from collections import Counter
from datetime import date
from io import BytesIO

import pandas as pd

from dates import business_days, month_bounds, normalize_date
from membership import latest_payment
from models import CLASS_TIMES, DELETED_MEMBER_NAME, PACKAGE_AFFILIATION, PRESENT, member_key
from utils import format_date

# Estimated sessions per member per month for the attendance rate
SESSIONS_PER_MONTH = 20


def _present(attendance, member_id=None, start: str | None = None, end: str | None = None) -> list:
    key = member_key(member_id) if member_id is not None else None
    result = []
    for record in attendance:
        if record.status != PRESENT:
            continue
        if key is not None and record.member_id != key:
            continue
        day = normalize_date(record.date)
        if start and end and not (start <= day <= end):
            continue
        result.append(record)
    return result


def statistics(users: list, attendance: list, income: list, today: date | None = None) -> dict:
    today = today or date.today()
    active = [u for u in users if u.is_active]
    first, last = month_bounds(today.year, today.month)

    monthly_income = sum(p.amount for p in income if first <= normalize_date(p.payment_date) <= last)
    possible = len(active) * SESSIONS_PER_MONTH
    rate = round(len(_present(attendance)) / possible * 100) if possible else 0

    return {
        "active_users": len(active),
        "monthly_income": round(monthly_income, 2),
        "attendance_rate": rate,
        "packages": sum(1 for u in active if u.affiliation_type == PACKAGE_AFFILIATION),
    }


def affiliation_distribution(users: list) -> pd.DataFrame:
    counts = Counter(u.affiliation_type or "Sin especificar" for u in users if u.is_active)
    return pd.DataFrame(list(counts.items()), columns=["Tipo Afiliación", "Usuarios"])


def attendance_by_class(users: list, attendance: list) -> pd.DataFrame:
    class_of = {str(u.id): u.class_time for u in users if u.is_active}
    counts = Counter(class_of.get(r.member_id) for r in _present(attendance))
    return pd.DataFrame(
        [(slot, counts.get(slot, 0)) for slot in CLASS_TIMES],
        columns=["Horario", "Asistencias"],
    )


def monthly_attendance_report(users: list, attendance: list, year: int, month: int) -> pd.DataFrame:
    """Per active non-coach member: sessions attended in the month and share of business days."""
    start, end = month_bounds(year, month)
    days = business_days(year, month)

    rows = []
    for user in users:
        if not user.is_active or user.is_coach:
            continue
        count = len(_present(attendance, user.id, start, end))
        attended = [normalize_date(r.date) for r in _present(attendance, user.id)]
        attended = [d for d in attended if d]
        rows.append(
            {
                "Nombre": user.name,
                "Clase": user.class_time or "No definida",
                "Asistencias": count,
                "Porcentaje": round(count / days * 100) if days else 0,
                "Última asistencia": format_date(max(attended)) if attended else "Nunca",
            }
        )

    df = pd.DataFrame(rows, columns=["Nombre", "Clase", "Asistencias", "Porcentaje", "Última asistencia"])
    df = df.sort_values("Asistencias", ascending=False, kind="stable").reset_index(drop=True)
    df.insert(0, "#", range(1, len(df) + 1))
    return df


def monthly_income_report(income: list, year: int, month: int) -> tuple[pd.DataFrame, dict]:
    """Payments of the month grouped by type, largest amount first, plus totals."""
    start, end = month_bounds(year, month)
    payments = [p for p in income if start <= normalize_date(p.payment_date) <= end]

    grouped: dict[str, dict] = {}
    for p in payments:
        entry = grouped.setdefault(p.payment_type or "Sin tipo", {"count": 0, "amount": 0.0})
        entry["count"] += 1
        entry["amount"] += p.amount

    total = sum(e["amount"] for e in grouped.values())
    rows = [
        {
            "Tipo": kind,
            "Cantidad": e["count"],
            "Monto": round(e["amount"], 2),
            "Porcentaje": round(e["amount"] / total * 100) if total else 0,
        }
        for kind, e in grouped.items()
    ]
    df = pd.DataFrame(rows, columns=["Tipo", "Cantidad", "Monto", "Porcentaje"])
    df = df.sort_values("Monto", ascending=False, kind="stable").reset_index(drop=True)
    return df, {"count": len(payments), "amount": round(total, 2)}


def combined_report(users: list, attendance: list, income: list, start: str, end: str, member_id=None) -> pd.DataFrame:
    """Attendance in a date range next to each member's latest payment."""
    selected = [u for u in users if u.is_active and not u.is_coach]
    if member_id not in (None, ""):
        key = member_key(member_id)
        selected = [u for u in selected if str(u.id) == key]

    rows = []
    for user in selected:
        last = latest_payment(user.id, income)
        validity, kind, amount = "Sin pago", "-", None
        if last is not None:
            kind = last.payment_type or user.affiliation_type or "-"
            amount = last.amount
            if last.start_date and last.end_date:
                validity = f"{format_date(normalize_date(last.start_date))} - {format_date(normalize_date(last.end_date))}"
        rows.append(
            {
                "Nombre": user.name,
                "Teléfono": user.phone or "-",
                "Asistencias": len(_present(attendance, user.id, start, end)),
                "Vigencia": validity,
                "Tipo Pago": kind,
                "Monto": amount,
            }
        )
    return pd.DataFrame(rows, columns=["Nombre", "Teléfono", "Asistencias", "Vigencia", "Tipo Pago", "Monto"])


def attendance_history(attendance: list, users_repo, start: str | None = None, end: str | None = None, member_id=None) -> pd.DataFrame:
    records = attendance
    if start and end:
        records = [r for r in records if start <= normalize_date(r.date) <= end]
    if member_id not in (None, ""):
        records = [r for r in records if r.member_id == member_key(member_id)]
    rows = []
    for r in records:
        member = users_repo.get(r.member_id)
        rows.append(
            {
                "ID": r.id,
                "Fecha": normalize_date(r.date),
                "Nombre": member.name if member else DELETED_MEMBER_NAME,
                "Clase": member.class_time if member else "N/A",
                "Estado": r.status,
            }
        )
    return pd.DataFrame(rows, columns=["ID", "Fecha", "Nombre", "Clase", "Estado"])


def income_history(income: list, users_repo) -> pd.DataFrame:
    rows = [
        {
            "ID": p.id,
            "Fecha Pago": p.payment_date,
            "Nombre": users_repo.display_name(p.member_id),
            "Monto": p.amount,
            "Tipo Pago": p.payment_type or "-",
            "Vence": p.end_date,
            "Descripción": p.description or "-",
        }
        for p in income
    ]
    return pd.DataFrame(rows, columns=["ID", "Fecha Pago", "Nombre", "Monto", "Tipo Pago", "Vence", "Descripción"])


def system_info(users: list, attendance: list, income: list, last_backup: str | None) -> dict:
    return {
        "users": sum(1 for u in users if u.is_active),
        "attendance": len(attendance),
        "income": len(income),
        "last_backup": format_date(normalize_date(last_backup)) if last_backup else "Nunca",
    }


def report_to_excel_bytes(df: pd.DataFrame, sheet_name: str = "Datos") -> bytes:
    out = BytesIO()
    with pd.ExcelWriter(out, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=sheet_name, index=False)
    return out.getvalue()
