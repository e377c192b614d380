"""
backup.py
Spreadsheet export/import (Usuarios, Asistencias, Pagos) and JSON snapshots.

Import is all-or-nothing at the workbook level (every sheet must be there) and
forgiving at the row level: bad dates become '', bad amounts become 0 and rows
without a member id are skipped and counted.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from io import BytesIO

import pandas as pd

import db
from dates import normalize_date
from models import AttendanceRecord, ImportFormatError, ImportSummary, Member, PaymentRecord, StorageError, member_key
from utils import now_ms

logger = logging.getLogger(__name__)

USERS_SHEET = "Usuarios"
ATTENDANCE_SHEET = "Asistencias"
INCOME_SHEET = "Pagos"
REQUIRED_SHEETS = (USERS_SHEET, ATTENDANCE_SHEET, INCOME_SHEET)

USER_HEADERS = {
    "id": "ID",
    "name": "Nombre",
    "document": "Documento",
    "birthdate": "Fecha Nacimiento",
    "phone": "Teléfono",
    "eps": "EPS",
    "rh": "RH",
    "pathology": "Patología",
    "emergencyContact": "Contacto Emergencia",
    "emergencyPhone": "Teléfono Emergencia",
    "classTime": "Horario Clase",
    "affiliationType": "Tipo Afiliación",
    "status": "Estado",
    "createdAt": "Fecha Creación",
}

ATTENDANCE_HEADERS = {
    "id": "ID",
    "userId": "ID Usuario",
    "date": "Fecha",
    "status": "Estado",
    "registeredAt": "Fecha Registro",
}

INCOME_HEADERS = {
    "id": "ID",
    "userId": "ID Usuario",
    "paymentDate": "Fecha Pago",
    "startDate": "Fecha Inicio",
    "endDate": "Fecha Fin",
    "paymentType": "Tipo Pago",
    "amount": "Monto",
    "description": "Descripción",
    "registeredAt": "Fecha Registro",
}

MODES = ("merge", "replace")


@dataclass
class WorkbookData:
    users: list[Member] = field(default_factory=list)
    attendance: list[AttendanceRecord] = field(default_factory=list)
    income: list[PaymentRecord] = field(default_factory=list)
    summary: ImportSummary = field(default_factory=ImportSummary)


def backup_filename(now: datetime | None = None) -> str:
    now = now or datetime.now()
    return f"Respaldo_Gimnasio_{now.date().isoformat()}_{now.strftime('%H-%M')}.xlsx"


def _sheet(records, headers: dict) -> pd.DataFrame:
    df = pd.DataFrame([r.to_dict() for r in records], columns=list(headers))
    return df.rename(columns=headers)


def export_workbook(users, attendance, income, now: datetime | None = None) -> bytes:
    """Three-sheet workbook of the current collections; stamps the last backup time."""
    out = BytesIO()
    with pd.ExcelWriter(out, engine="openpyxl") as writer:
        _sheet(users.all(), USER_HEADERS).to_excel(writer, sheet_name=USERS_SHEET, index=False)
        _sheet(attendance.all(), ATTENDANCE_HEADERS).to_excel(writer, sheet_name=ATTENDANCE_SHEET, index=False)
        _sheet(income.all(), INCOME_HEADERS).to_excel(writer, sheet_name=INCOME_SHEET, index=False)
    users.store.set(db.LAST_BACKUP, (now or datetime.now()).isoformat(timespec="seconds"))
    return out.getvalue()


def _cell_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float):
        if pd.isna(value):
            return ""
        if value.is_integer():
            return str(int(value))
    if isinstance(value, (datetime, pd.Timestamp)):
        return value.isoformat()
    return str(value).strip()


def _rows(df: pd.DataFrame, headers: dict) -> list[dict]:
    # Accept the Spanish export headers or the internal field names
    reverse = {spanish: internal for internal, spanish in headers.items()}
    df = df.rename(columns=lambda c: reverse.get(str(c).strip(), str(c).strip()))
    rows = []
    for raw in df.to_dict(orient="records"):
        rows.append({name: _cell_text(raw.get(name)) for name in headers})
    return rows


def _user_from_row(row: dict) -> Member | None:
    if not member_key(row["id"]).isdigit():
        return None
    row["birthdate"] = normalize_date(row["birthdate"])
    row["status"] = "inactive" if row["status"].lower() in ("inactive", "inactivo") else "active"
    return Member.from_dict(row)


def _attendance_from_row(row: dict, fallback_id: int) -> AttendanceRecord | None:
    if not member_key(row["userId"]):
        return None
    row["date"] = normalize_date(row["date"])
    if not member_key(row["id"]).isdigit():
        row["id"] = fallback_id
    return AttendanceRecord.from_dict(row)


def _payment_from_row(row: dict, fallback_id: int) -> PaymentRecord | None:
    if not member_key(row["userId"]):
        return None
    for name in ("paymentDate", "startDate", "endDate"):
        row[name] = normalize_date(row[name])
    if not member_key(row["id"]).isdigit():
        row["id"] = fallback_id
    return PaymentRecord.from_dict(row)


def read_workbook(data: bytes) -> WorkbookData:
    """Parse an exported workbook. Raises ImportFormatError when it cannot be used at all."""
    try:
        sheets = pd.read_excel(BytesIO(data), sheet_name=None, dtype=object)
    except Exception as exc:
        raise ImportFormatError("No se pudo leer el archivo de Excel.") from exc

    missing = [name for name in REQUIRED_SHEETS if name not in sheets]
    if missing:
        raise ImportFormatError(f"El archivo no contiene las hojas requeridas: {', '.join(missing)}")

    result = WorkbookData()
    summary = result.summary
    base_id = now_ms()

    for row in _rows(sheets[USERS_SHEET], USER_HEADERS):
        member = _user_from_row(row)
        if member is None:
            summary.rejected[USERS_SHEET] += 1
            continue
        result.users.append(member)
        summary.accepted[USERS_SHEET] += 1

    for offset, row in enumerate(_rows(sheets[ATTENDANCE_SHEET], ATTENDANCE_HEADERS)):
        record = _attendance_from_row(row, base_id + offset)
        if record is None:
            summary.rejected[ATTENDANCE_SHEET] += 1
            continue
        result.attendance.append(record)
        summary.accepted[ATTENDANCE_SHEET] += 1

    for offset, row in enumerate(_rows(sheets[INCOME_SHEET], INCOME_HEADERS)):
        record = _payment_from_row(row, base_id + offset)
        if record is None:
            summary.rejected[INCOME_SHEET] += 1
            continue
        result.income.append(record)
        summary.accepted[INCOME_SHEET] += 1

    if summary.total_rejected:
        logger.warning("Workbook import skipped rows: %s", summary.rejected)
    return result


def _merge(existing: list, incoming: list) -> tuple[list, int]:
    seen = {str(r.id) for r in existing}
    merged = list(existing)
    added = 0
    for record in incoming:
        if str(record.id) in seen:
            continue
        seen.add(str(record.id))
        merged.append(record)
        added += 1
    return merged, added


def apply_import(users, attendance, income, data: WorkbookData, mode: str = "merge") -> dict:
    """
    Put imported records into the repositories and write each collection once.

    merge: existing records stay, only unseen ids are added.
    replace: previous collections are discarded.
    Returns the number of records added per sheet.
    """
    if mode not in MODES:
        raise ValueError(f"Unknown import mode: {mode}")

    added = {}
    failed = []
    for repo, incoming, sheet in (
        (users, data.users, USERS_SHEET),
        (attendance, data.attendance, ATTENDANCE_SHEET),
        (income, data.income, INCOME_SHEET),
    ):
        base = [] if mode == "replace" else repo.records
        repo.records, added[sheet] = _merge(base, incoming)
        if not repo.save():
            logger.error("Import could not persist %s; memory and storage now differ", sheet)
            failed.append(sheet)

    if failed:
        raise StorageError(f"No se pudieron guardar: {', '.join(failed)}")
    logger.info("Workbook imported (%s): %s", mode, added)
    return added


def create_snapshot(store: db.RecordStore, now: datetime | None = None) -> dict:
    """Copy the three collections into the store's backup slot."""
    timestamp = (now or datetime.now()).isoformat(timespec="seconds")
    snapshot = {
        "users": store.get(db.USERS, []),
        "attendance": store.get(db.ATTENDANCE, []),
        "income": store.get(db.INCOME, []),
        "timestamp": timestamp,
    }
    if not store.set(db.GYM_SYSTEM_BACKUP, snapshot):
        raise StorageError("No se pudo guardar la copia de seguridad.")
    store.set(db.LAST_BACKUP, timestamp)
    logger.info("Snapshot created at %s", timestamp)
    return snapshot


def restore_snapshot(store: db.RecordStore, snapshot: dict | None = None) -> bool:
    """
    Write a snapshot (the stored one by default) back over the collections.
    Repositories must be reloaded afterwards.
    """
    if snapshot is None:
        snapshot = store.get(db.GYM_SYSTEM_BACKUP, None)
    if not isinstance(snapshot, dict) or not all(k in snapshot for k in ("users", "attendance", "income")):
        return False
    ok = all(
        [
            store.set(db.USERS, snapshot["users"]),
            store.set(db.ATTENDANCE, snapshot["attendance"]),
            store.set(db.INCOME, snapshot["income"]),
        ]
    )
    logger.info("Snapshot from %s restored (ok=%s)", snapshot.get("timestamp"), ok)
    return ok


def snapshot_to_json(snapshot: dict) -> bytes:
    return json.dumps(snapshot, ensure_ascii=False, indent=2).encode("utf-8")


def snapshot_from_json(data: bytes) -> dict:
    try:
        snapshot = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise ImportFormatError("El archivo de respaldo no es un JSON válido.") from exc
    if not isinstance(snapshot, dict) or not all(k in snapshot for k in ("users", "attendance", "income")):
        raise ImportFormatError("El archivo de respaldo no tiene usuarios, asistencias y pagos.")
    return snapshot


def is_auto_backup_enabled(store: db.RecordStore) -> bool:
    return bool(store.get(db.AUTO_BACKUP_ENABLED, False))


def set_auto_backup(store: db.RecordStore, enabled: bool) -> bool:
    return store.set(db.AUTO_BACKUP_ENABLED, bool(enabled))


def auto_backup_if_due(store: db.RecordStore, now: datetime | None = None, interval: timedelta = timedelta(days=1)) -> bool:
    """Take a snapshot when auto-backup is on and the last one is older than ``interval``."""
    if not is_auto_backup_enabled(store):
        return False
    now = now or datetime.now()
    last = store.get(db.LAST_BACKUP, None)
    if last:
        try:
            if now - datetime.fromisoformat(str(last)) < interval:
                return False
        except ValueError:
            logger.warning("Ignoring unreadable last backup stamp %r", last)
    create_snapshot(store, now)
    return True
