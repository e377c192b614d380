from datetime import date
from io import BytesIO

import pandas as pd

import reports
from conftest import att, pay
from models import COACH_AFFILIATION, Member
from repository import UsersRepository

MEMBERS = [
    Member(id=1, name="Ana", phone="3001234567", class_time="6:00 am", affiliation_type="Mensualidad"),
    Member(id=2, name="Beto", class_time="5:30 pm", affiliation_type="paquete 10 clases"),
    Member(id=3, name="Coach", class_time="6:00 am", affiliation_type=COACH_AFFILIATION),
    Member(id=4, name="Dani", class_time="6:00 am", affiliation_type="Mensualidad", status="inactive"),
]

ATTENDANCE = [
    att(1, "2024-01-02", id=1),
    att(1, "2024-01-03", id=2),
    att(1, "2024-01-04", id=3),
    att(2, "2024-01-03", id=4),
    att(2, "2024-01-05", status="ausente", id=5),
    att(1, "2023-12-29", id=6),
]

INCOME = [
    pay(1, "2024-01-31", payment_date="2024-01-01", id=1, amount=100000),
    pay(2, "2024-01-31", payment_date="2024-01-10", id=2, amount=100000),
    pay(3, "2024-01-15", payment_date="2024-01-01", id=3, payment_type="Quincena", amount=50000),
    pay(1, "2023-12-31", payment_date="2023-12-01", id=4, amount=90000),
]


def test_statistics():
    stats = reports.statistics(MEMBERS, ATTENDANCE, INCOME, today=date(2024, 1, 20))
    assert stats["active_users"] == 3
    assert stats["monthly_income"] == 250000
    assert stats["packages"] == 1
    # 5 present records over 3 active members x 20 sessions
    assert stats["attendance_rate"] == 8


def test_statistics_without_members():
    assert reports.statistics([], [], [], today=date(2024, 1, 20))["attendance_rate"] == 0


def test_affiliation_distribution_counts_active_members():
    df = reports.affiliation_distribution(MEMBERS)
    counts = dict(zip(df["Tipo Afiliación"], df["Usuarios"]))
    assert counts == {"Mensualidad": 1, "paquete 10 clases": 1, COACH_AFFILIATION: 1}


def test_attendance_by_class_lists_every_slot():
    df = reports.attendance_by_class(MEMBERS, ATTENDANCE)
    counts = dict(zip(df["Horario"], df["Asistencias"]))
    assert len(df) == 8
    assert counts["6:00 am"] == 4
    assert counts["5:30 pm"] == 1
    assert counts["7:30 pm"] == 0


def test_monthly_attendance_report():
    df = reports.monthly_attendance_report(MEMBERS, ATTENDANCE, 2024, 1)
    assert list(df["Nombre"]) == ["Ana", "Beto"]
    assert list(df["#"]) == [1, 2]
    assert list(df["Asistencias"]) == [3, 1]
    # January 2024 has 27 days that are not Sundays
    assert df.loc[0, "Porcentaje"] == 11
    assert df.loc[0, "Última asistencia"] == "04/01/2024"


def test_monthly_income_report_groups_by_type():
    df, totals = reports.monthly_income_report(INCOME, 2024, 1)
    assert list(df["Tipo"]) == ["Mensualidad", "Quincena"]
    assert list(df["Cantidad"]) == [2, 1]
    assert list(df["Monto"]) == [200000, 50000]
    assert list(df["Porcentaje"]) == [80, 20]
    assert totals == {"count": 3, "amount": 250000}


def test_monthly_income_report_for_empty_month():
    df, totals = reports.monthly_income_report(INCOME, 2022, 5)
    assert df.empty
    assert totals == {"count": 0, "amount": 0}


def test_combined_report():
    members = MEMBERS + [Member(id=5, name="Eva", affiliation_type="Mensualidad")]
    df = reports.combined_report(members, ATTENDANCE, INCOME, "2024-01-01", "2024-01-31")
    rows = {row["Nombre"]: row for row in df.to_dict(orient="records")}

    assert set(rows) == {"Ana", "Beto", "Eva"}
    assert rows["Ana"]["Asistencias"] == 3
    assert rows["Ana"]["Vigencia"] == "01/01/2024 - 31/01/2024"
    assert rows["Ana"]["Monto"] == 100000
    assert rows["Eva"]["Vigencia"] == "Sin pago"
    assert rows["Eva"]["Teléfono"] == "-"


def test_combined_report_for_one_member():
    df = reports.combined_report(MEMBERS, ATTENDANCE, INCOME, "2024-01-01", "2024-01-31", member_id="2")
    assert list(df["Nombre"]) == ["Beto"]


def test_histories_name_deleted_members(store):
    users = UsersRepository(store)
    df = reports.attendance_history([att(9, "2024-01-02")], users)
    assert df.loc[0, "Nombre"] == "Usuario eliminado"
    df = reports.income_history([pay(9, "2024-01-31")], users)
    assert df.loc[0, "Nombre"] == "Usuario eliminado"


def test_attendance_history_filters():
    users = {m.id: m for m in MEMBERS}

    class Lookup:
        def get(self, member_id):
            return users.get(int(member_id))

    df = reports.attendance_history(ATTENDANCE, Lookup(), "2024-01-01", "2024-01-31", member_id=1)
    assert list(df["Fecha"]) == ["2024-01-02", "2024-01-03", "2024-01-04"]
    assert set(df["Clase"]) == {"6:00 am"}


def test_system_info():
    info = reports.system_info(MEMBERS, ATTENDANCE, INCOME, "2024-01-15T18:00:00")
    assert info == {"users": 3, "attendance": 6, "income": 4, "last_backup": "15/01/2024"}
    assert reports.system_info([], [], [], None)["last_backup"] == "Nunca"


def test_report_to_excel_bytes():
    df = pd.DataFrame([{"Nombre": "Ana", "Asistencias": 3}])
    data = reports.report_to_excel_bytes(df, sheet_name="Reporte")
    back = pd.read_excel(BytesIO(data), sheet_name="Reporte")
    assert back.to_dict(orient="records") == [{"Nombre": "Ana", "Asistencias": 3}]
