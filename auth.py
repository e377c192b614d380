"""
auth.py
Operator accounts: the built-in admin/coach list, bcrypt hashing, login, password change.
"""

from __future__ import annotations

import bcrypt

import db

# Built-in accounts (username, initial password, role), created on first run
DEFAULT_ACCOUNTS = [
    ("admin", "admin123", "admin"),
    ("coach", "coach123", "coach"),
]

BCRYPT_ROUNDS = 12

# Pages each role may open
ROLE_PAGES = {
    "admin": ["Inicio", "Usuarios", "Asistencia", "Pagos", "Reportes", "Respaldo", "Configuración"],
    "coach": ["Inicio", "Asistencia"],
}


def _to_bcrypt_secret(password: str) -> bytes:
    # bcrypt reads at most 72 bytes; longer input raises in recent releases
    return password.encode("utf-8")[:72]


def hash_password(password: str) -> str:
    secret = _to_bcrypt_secret(password)
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(secret, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    secret = _to_bcrypt_secret(password)
    return bcrypt.checkpw(secret, password_hash.encode("utf-8"))


def ensure_default_accounts(db_file=None) -> None:
    """Create the built-in accounts that do not exist yet (hashing only those)."""
    db.init_db(db_file)
    for username, password, role in DEFAULT_ACCOUNTS:
        if not db.get_account(username, db_file=db_file):
            db.insert_account(username, hash_password(password), role, db_file=db_file)


def login(username: str, password: str, db_file=None) -> str | None:
    """Returns the account role on success, None otherwise."""
    account = db.get_account(username, db_file=db_file)
    if not account:
        return None
    if not verify_password(password, account["password_hash"]):
        return None
    return account["role"]


def allowed_pages(role: str | None) -> list[str]:
    return ROLE_PAGES.get(role or "", [])


def change_password(username: str, new_password: str, db_file=None) -> None:
    db.update_password_hash(username, hash_password(new_password), db_file=db_file)
