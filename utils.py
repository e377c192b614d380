"""
utils.py
Validation, formatting, birthdays, sample data.
"""

from __future__ import annotations

import math
import re
import time
from datetime import date, datetime, timedelta
from typing import Iterable

from dates import parse_date

MONTH_NAMES = [
    "enero", "febrero", "marzo", "abril", "mayo", "junio",
    "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
]

_PHONE_RE = re.compile(r"^3\d{9}$")


def now_iso() -> str:
    return datetime.now().isoformat(timespec="seconds")


def now_ms() -> int:
    return int(time.time() * 1000)


def clean_phone(phone) -> str:
    if not phone:
        return ""
    return re.sub(r"\D", "", str(phone))


def is_valid_phone(phone) -> bool:
    """10 digits starting with 3 (Colombian mobile)."""
    if not phone:
        return False
    return bool(_PHONE_RE.match(clean_phone(phone)))


def next_member_id(ids: Iterable[int]) -> int:
    ids = list(ids)
    return max(ids) + 1 if ids else 1


def validate_member_inputs(name: str, phone: str, emergency_phone: str, require_phones: bool = True) -> list[str]:
    """
    On registration both phones are required; on edit they are checked only
    when filled in.
    """
    errors: list[str] = []
    if not (name or "").strip():
        errors.append("El nombre es obligatorio.")
    if require_phones or phone:
        if not is_valid_phone(phone):
            errors.append("El formato del teléfono principal es inválido. Debe tener 10 dígitos y comenzar con 3.")
    if require_phones or emergency_phone:
        if not is_valid_phone(emergency_phone):
            errors.append("El formato del teléfono de emergencia es inválido. Debe tener 10 dígitos y comenzar con 3.")
    return errors


def validate_payment_inputs(member_id, amount, start_date: str, end_date: str) -> list[str]:
    errors: list[str] = []
    if member_id in (None, ""):
        errors.append("Por favor, seleccione un usuario.")
    try:
        value = float(amount)
    except (TypeError, ValueError):
        errors.append("El monto debe ser numérico.")
    else:
        if not math.isfinite(value):
            errors.append("El monto debe ser numérico.")
        elif value < 0:
            errors.append("El monto no puede ser negativo.")
    start, end = parse_date(start_date), parse_date(end_date)
    if start is None or end is None:
        errors.append("Las fechas de inicio y fin deben ser válidas (AAAA-MM-DD).")
    elif end < start:
        errors.append("La fecha de fin debe ser posterior a la de inicio.")
    return errors


def format_number(number) -> str:
    """Thousands separated with dots: 150000 -> '150.000'."""
    return f"{float(number):,.0f}".replace(",", ".")


def format_currency(amount) -> str:
    try:
        value = float(amount)
    except (TypeError, ValueError):
        value = 0.0
    sign = "-" if value < 0 else ""
    return f"{sign}$ {format_number(abs(value))}"


def format_date(value: str | None) -> str:
    """ISO -> dd/mm/yyyy; '' when empty or invalid."""
    d = parse_date(value)
    return d.strftime("%d/%m/%Y") if d else ""


def format_date_long(value: str | None) -> str:
    """ISO -> '10 de enero de 2024'."""
    d = parse_date(value)
    if d is None:
        return ""
    return f"{d.day:02d} de {MONTH_NAMES[d.month - 1]} de {d.year}"


def filter_list(items: list, search_text: str, fields: list[str]) -> list:
    """Case-insensitive substring search over the given attributes."""
    if not search_text:
        return list(items)
    needle = search_text.lower()
    result = []
    for item in items:
        for name in fields:
            value = getattr(item, name, None)
            if value and needle in str(value).lower():
                result.append(item)
                break
    return result


def days_until_birthday(birthdate: str, today: date | None = None) -> int | None:
    """Days until the next birthday (0 = today), None without a usable birth date."""
    born = parse_date(birthdate)
    if born is None:
        return None
    today = today or date.today()
    year = today.year
    while True:
        try:
            upcoming = born.replace(year=year)
        except ValueError:
            # Feb 29 in a non-leap year
            upcoming = date(year, 3, 1)
        if upcoming >= today:
            return (upcoming - today).days
        year += 1


def insert_sample_data(users, attendance, income) -> None:
    """
    Insert 3 sample members with payments and some attendance
    (safe to run multiple times: adds new rows each time).
    """
    today = date.today()

    samples = [
        # name, document, phone, class, days until coverage ends
        ("Laura Gómez", "1020304050", "3001234567", "6:00 am", 20),
        ("Andrés Pérez", "1098765432", "3109876543", "5:30 pm", 2),
        ("Camila Ríos", "1122334455", "3205554433", "7:00 am", -10),
    ]

    for name, document, phone, class_time, days_left in samples:
        member = users.add(
            name=name,
            document=document,
            birthdate=(today - timedelta(days=365 * 28)).isoformat(),
            phone=phone,
            emergency_contact="Contacto de prueba",
            emergency_phone="3150000000",
            class_time=class_time,
            affiliation_type="Mensualidad",
        )
        end = today + timedelta(days=days_left)
        income.add(
            member.id,
            start_date=(end - timedelta(days=30)).isoformat(),
            end_date=end.isoformat(),
            payment_type="Mensualidad",
            amount=120000,
            description="Pago de prueba",
            payment_date=(end - timedelta(days=30)).isoformat(),
        )

    # Roll calls for the last few days
    members = users.active()
    for offset in (1, 2, 5):
        day = (today - timedelta(days=offset)).isoformat()
        attendance.save_day(day, [m.id for m in members[: len(members) - offset % 2]])
