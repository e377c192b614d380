"""
messaging.py
WhatsApp click-to-chat links and the reminder/confirmation texts.
"""

from __future__ import annotations

from urllib.parse import quote

from models import Member, MembershipStatus, PaymentRecord, ValidationError
from utils import clean_phone, format_date_long, format_number, is_valid_phone

COUNTRY_CODE = "57"
GYM_NAME = "Antología Box23"

# characters encodeURIComponent leaves alone
_URI_SAFE = "-_.!~*'()"


def whatsapp_link(phone: str, message: str) -> str:
    if not is_valid_phone(phone):
        raise ValidationError("El usuario no tiene un número de teléfono válido.")
    return f"https://wa.me/{COUNTRY_CODE}{clean_phone(phone)}?text={quote(message, safe=_URI_SAFE)}"


def payment_confirmation_message(member: Member, payment: PaymentRecord) -> str:
    amount = format_number(int(payment.amount))
    until = format_date_long(payment.end_date)
    return (
        f"Hola {member.name}, tu pago en {GYM_NAME} por un valor de ${amount} por {payment.payment_type} "
        f"ha sido registrado exitosamente. Tu membresía es válida hasta el {until}. "
        f"¡Gracias por confiar en {GYM_NAME}!"
    )


def payment_reminder_message(member: Member, status: MembershipStatus) -> str:
    return (
        f"Hola {member.name}, tu membresía en {GYM_NAME} venció hace {status.days_expired} días. \n"
        "Por favor, renueva tu pago para continuar asistiendo a las clases. \n"
        "¡Te esperamos!"
    )


def absence_reminder_message(member: Member, status: MembershipStatus) -> str:
    message = f"Hola {member.name}, te extrañamos en {GYM_NAME}. "
    if status.expired:
        message += (
            f"Notamos que tu membresía venció hace {status.days_expired} días y que no has asistido últimamente. "
            "¿Necesitas renovar tu pago o hay algún motivo por el que no has podido asistir? "
        )
    else:
        message += (
            "Notamos que no has asistido a clases recientemente. "
            f"¿Todo está bien? Esperamos verte pronto en {member.class_time or 'tu clase habitual'}. "
        )
    return message + "¡Tu salud y bienestar son importantes para nosotros!"
