from datetime import date

import pytest

from conftest import pay
from membership import get_membership_status
from messaging import (
    absence_reminder_message,
    payment_confirmation_message,
    payment_reminder_message,
    whatsapp_link,
)
from models import Member, ValidationError

ANA = Member(id=1, name="Ana", phone="3001234567", class_time="6:00 am")


def test_link_uses_country_code_and_encodes_message():
    link = whatsapp_link("300 123-4567", "Hola ¿qué tal? (ok)")
    assert link == "https://wa.me/573001234567?text=Hola%20%C2%BFqu%C3%A9%20tal%3F%20(ok)"


@pytest.mark.parametrize("phone", ["", None, "12345", "2001234567"])
def test_link_requires_valid_phone(phone):
    with pytest.raises(ValidationError):
        whatsapp_link(phone, "Hola")


def test_payment_confirmation_message():
    payment = pay(1, "2024-01-31", amount=120000.0)
    text = payment_confirmation_message(ANA, payment)
    assert text.startswith("Hola Ana, tu pago en Antología Box23 por un valor de $120.000 por Mensualidad")
    assert "válida hasta el 31 de enero de 2024" in text


def test_payment_reminder_message():
    status = get_membership_status(1, [pay(1, "2024-01-10")], [], today=date(2024, 1, 15))
    assert "venció hace 5 días" in payment_reminder_message(ANA, status)


def test_absence_reminder_depends_on_membership():
    expired = get_membership_status(1, [pay(1, "2024-01-10")], [], today=date(2024, 1, 15))
    current = get_membership_status(1, [pay(1, "2024-02-10")], [], today=date(2024, 1, 15))

    expired_text = absence_reminder_message(ANA, expired)
    current_text = absence_reminder_message(ANA, current)

    assert "venció hace 5 días" in expired_text
    assert "6:00 am" in current_text
    assert "venció" not in current_text
    assert expired_text.endswith("¡Tu salud y bienestar son importantes para nosotros!")
