"""
app.py
Streamlit gym administration (members, attendance, payments, reports, backups).
Run: streamlit run app.py
"""

from __future__ import annotations

import logging
from datetime import date, timedelta

import pandas as pd
import streamlit as st

import auth
import backup
import db
import messaging
import reports
import utils
from dates import parse_date
from membership import absence_alerts, get_membership_status, membership_badge
from models import (
    AFFILIATION_TYPES,
    CLASS_TIMES,
    MEMBER_STATUSES,
    PAYMENT_TYPES,
    RECENTLY_EXPIRED_DAYS,
    ImportFormatError,
    StorageError,
    ValidationError,
)
from repository import AttendanceRepository, IncomeRepository, UsersRepository

st.set_page_config(page_title="Gestión del Gimnasio", layout="wide")

logger = logging.getLogger(__name__)

BADGE_ICON = {"success": "🟢", "warning": "🟡", "danger": "🔴"}


@st.cache_resource
def init_once() -> db.RecordStore:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    auth.ensure_default_accounts()
    return db.RecordStore()


def require_login():
    if "logged_in" not in st.session_state:
        st.session_state.logged_in = False
    if "username" not in st.session_state:
        st.session_state.username = None
    if "role" not in st.session_state:
        st.session_state.role = None


def logout():
    st.session_state.logged_in = False
    st.session_state.username = None
    st.session_state.role = None
    st.success("Sesión cerrada.")


def login_screen():
    st.title("🔐 Ingreso")

    col1, col2 = st.columns([1, 1])
    with col1:
        username = st.text_input("Usuario", value="admin")
        password = st.text_input("Contraseña", type="password")
        if st.button("Ingresar", type="primary"):
            role = auth.login(username.strip(), password)
            if role:
                st.session_state.logged_in = True
                st.session_state.username = username.strip()
                st.session_state.role = role
                st.rerun()
            else:
                st.error("Credenciales inválidas.")

    with col2:
        st.info("Cuentas iniciales:\n\n- **admin** / admin123\n- **coach** / coach123")


# ---------- Data access helpers ----------

def load_repos(store: db.RecordStore):
    return UsersRepository(store), AttendanceRepository(store), IncomeRepository(store)


def show_errors(exc: ValidationError | StorageError):
    for e in getattr(exc, "errors", None) or [str(exc)]:
        st.error(e)


def member_label(member) -> str:
    return f"{member.name} - {member.class_time or 'Sin clase'} - {member.document or 'Sin documento'}"


def status_text(status) -> str:
    return f"{BADGE_ICON[membership_badge(status)]} {status.status}"


def dashboard_page(store, users, attendance, income):
    st.header("📊 Inicio")

    try:
        if backup.auto_backup_if_due(store):
            st.toast("Respaldo automático creado.")
    except StorageError as exc:
        show_errors(exc)

    stats = reports.statistics(users.all(), attendance.all(), income.all())
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Usuarios activos", stats["active_users"])
    c2.metric("Ingresos del mes", utils.format_currency(stats["monthly_income"]))
    c3.metric("Tasa de asistencia", f"{stats['attendance_rate']}%")
    c4.metric("Paquetes 10 clases", stats["packages"])

    st.divider()

    st.subheader("Membresías por vencer o vencidas")
    rows = []
    for m in users.active():
        if m.is_coach:
            continue
        status = get_membership_status(m.id, income.all(), attendance.all())
        if status.urgency in ("expiring", "expired_recent"):
            rows.append({"ID": m.id, "Nombre": m.name, "Teléfono": m.phone, "Estado": status_text(status)})
    if rows:
        st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)
    else:
        st.caption("No hay membresías por vencer.")

    st.subheader("🎂 Cumpleaños próximos (3 días)")
    birthdays = users.upcoming_birthdays(days=3)
    if birthdays:
        st.dataframe(
            pd.DataFrame([{"Nombre": m.name, "Fecha": utils.format_date(m.birthdate), "Días": d} for m, d in birthdays]),
            use_container_width=True,
            hide_index=True,
        )
    else:
        st.caption("No hay cumpleaños en los próximos días.")


def member_form(users, existing=None):
    if existing:
        st.subheader(f"✏️ Editar usuario (ID: {existing.id})")
    else:
        st.subheader("➕ Registrar usuario")

    prefix = f"edit_{existing.id}_" if existing else "new_"
    col1, col2, col3 = st.columns(3)
    with col1:
        name = st.text_input("Nombre", value=existing.name if existing else "", key=prefix + "name")
        document = st.text_input("Documento", value=existing.document if existing else "", key=prefix + "document")
        birth = parse_date(existing.birthdate) if existing else None
        birthdate = st.date_input("Fecha de nacimiento", value=birth, min_value=date(1920, 1, 1), key=prefix + "birth")
        phone = st.text_input("Teléfono", value=existing.phone if existing else "", key=prefix + "phone")

    with col2:
        eps = st.text_input("EPS", value=existing.eps if existing else "", key=prefix + "eps")
        rh = st.text_input("RH", value=existing.rh if existing else "", key=prefix + "rh")
        pathology = st.text_area("Patologías", value=existing.pathology if existing else "", key=prefix + "pathology")

    with col3:
        emergency_contact = st.text_input(
            "Contacto de emergencia", value=existing.emergency_contact if existing else "", key=prefix + "ec"
        )
        emergency_phone = st.text_input(
            "Teléfono de emergencia", value=existing.emergency_phone if existing else "", key=prefix + "ep"
        )
        class_time = st.selectbox(
            "Horario de clase",
            options=CLASS_TIMES,
            index=CLASS_TIMES.index(existing.class_time) if existing and existing.class_time in CLASS_TIMES else 0,
            key=prefix + "class",
        )
        affiliation_type = st.selectbox(
            "Tipo de afiliación",
            options=AFFILIATION_TYPES,
            index=AFFILIATION_TYPES.index(existing.affiliation_type)
            if existing and existing.affiliation_type in AFFILIATION_TYPES
            else 0,
            key=prefix + "affiliation",
        )
        status = st.selectbox(
            "Estado",
            options=list(MEMBER_STATUSES),
            index=MEMBER_STATUSES.index(existing.status) if existing and existing.status in MEMBER_STATUSES else 0,
            key=prefix + "status",
        )

    if st.button("Guardar", type="primary", key=prefix + "save"):
        fields = dict(
            name=name.strip(),
            document=document.strip(),
            birthdate=birthdate.isoformat() if birthdate else "",
            phone=phone.strip(),
            eps=eps.strip(),
            rh=rh.strip(),
            pathology=pathology.strip(),
            emergency_contact=emergency_contact.strip(),
            emergency_phone=emergency_phone.strip(),
            class_time=class_time,
            affiliation_type=affiliation_type,
            status=status,
        )
        try:
            if existing:
                users.update(existing.id, **fields)
                st.session_state.edit_member_id = None
                st.success("Usuario actualizado correctamente.")
            else:
                users.add(**fields)
                st.success("Usuario registrado correctamente.")
        except (ValidationError, StorageError) as exc:
            show_errors(exc)
            return
        st.rerun()


def users_page(store, users, attendance, income):
    st.header("👥 Usuarios")

    search = st.text_input("Buscar (nombre, documento o teléfono)")
    rows = []
    for m in users.search(search):
        until = utils.days_until_birthday(m.birthdate)
        rows.append(
            {
                "ID": m.id,
                "Nombre": m.name + (f" 🎂 {until} días" if until is not None and until <= 3 else ""),
                "Documento": m.document or "-",
                "Teléfono": m.phone or "-",
                "Clase": m.class_time or "-",
                "Última asistencia": utils.format_date(attendance.last_attendance(m.id)) or "Nunca",
                "Estado": "Activo" if m.is_active else "Inactivo",
                "Membresía": status_text(get_membership_status(m.id, income.all(), attendance.all())),
            }
        )
    st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)

    st.divider()

    colA, colB = st.columns([1, 2])
    with colA:
        st.subheader("Seleccionar usuario")
        ids = [str(m.id) for m in users.all()]
        selected_id = st.selectbox("ID de usuario", options=["(ninguno)"] + ids)

    with colB:
        if selected_id != "(ninguno)":
            m = users.get(selected_id)
            st.subheader("Acciones")
            c1, c2, c3 = st.columns(3)
            with c1:
                if st.button("Editar"):
                    st.session_state.edit_member_id = m.id
                    st.rerun()
            with c2:
                with st.popover("Información de emergencia"):
                    st.markdown(
                        f"**EPS:** {m.eps or 'No registrada'}  \n"
                        f"**Tipo de sangre (RH):** {m.rh or 'No registrado'}  \n"
                        f"**Patologías:** {m.pathology or 'Ninguna registrada'}  \n"
                        f"**Contacto de emergencia:** {m.emergency_contact or 'No registrado'}  \n"
                        f"**Teléfono de emergencia:** {m.emergency_phone or 'No registrado'}"
                    )
            with c3:
                delete_confirm = st.checkbox("Confirmar eliminación", value=False, key="del_confirm")
                if st.button("Eliminar", type="secondary", disabled=not delete_confirm):
                    try:
                        users.delete(m.id)
                    except StorageError as exc:
                        show_errors(exc)
                    else:
                        st.success("Usuario eliminado.")
                        st.rerun()

    st.divider()

    existing = users.get(st.session_state.get("edit_member_id")) if st.session_state.get("edit_member_id") else None
    if existing:
        member_form(users, existing=existing)
        if st.button("Cancelar edición"):
            st.session_state.edit_member_id = None
            st.rerun()
    else:
        member_form(users)


def reminder_button(label: str, phone: str, message: str):
    try:
        st.link_button(label, messaging.whatsapp_link(phone, message))
    except ValidationError as exc:
        st.caption(f"{label}: {exc.errors[0]}")


def attendance_page(store, users, attendance, income):
    st.header("✅ Asistencia")

    day = st.date_input("Fecha", value=date.today()).isoformat()
    roster = sorted((m for m in users.active() if not m.is_coach), key=lambda m: m.name.lower())
    present = attendance.present_on(day)
    search = st.text_input("Buscar en la lista")

    shown = utils.filter_list(roster, search, ["name"])
    checked = []
    for m in shown:
        status = get_membership_status(m.id, income.all(), attendance.all())
        blocked = status.expired and status.days_expired > RECENTLY_EXPIRED_DAYS
        c1, c2, c3 = st.columns([3, 3, 1])
        with c1:
            mark = st.checkbox(
                f"{m.name}" + (" ⚠️" if blocked else ""),
                value=str(m.id) in present,
                disabled=blocked,
                key=f"att_{day}_{m.id}",
            )
            st.caption(f"Clase: {m.class_time or 'Sin clase asignada'}")
        with c2:
            st.write(f"Membresía: {status_text(status)}")
            if status.attendance_after_expiry:
                st.caption(f"🔴 {status.attendance_after_expiry} asistidas después del vencimiento")
            if status.end_date:
                st.caption(f"Vence: {utils.format_date(status.end_date)}")
        with c3:
            if status.expired and status.has_membership:
                reminder_button("💸", m.phone, messaging.payment_reminder_message(m, status))
        if mark and not blocked:
            checked.append(m.id)

    c1, c2, c3 = st.columns(3)
    c1.metric("Total", len(roster))
    hidden_present = len(({str(m.id) for m in roster} - {str(m.id) for m in shown}) & present)
    c2.metric("Presentes", len(checked) + hidden_present)
    c3.metric("Pendientes", len(roster) - len(checked) - hidden_present)

    if st.button("Guardar asistencia", type="primary"):
        try:
            # members hidden by the search keep their mark
            saved = attendance.save_shown(day, [m.id for m in shown], checked)
        except (ValidationError, StorageError) as exc:
            show_errors(exc)
        else:
            if saved:
                st.success(f"Asistencias guardadas correctamente. Total: {saved}")
            else:
                st.warning("No se guardaron asistencias. Verifique que los usuarios tengan membresía vigente.")

    st.divider()

    st.subheader("⚠️ Inasistencias consecutivas")
    alerts = absence_alerts(users.all(), attendance.all(), income.all())
    if not alerts:
        st.success("No hay alertas de inasistencias consecutivas.")
    for alert in alerts:
        m = alert.member
        with st.container(border=True):
            st.markdown(
                f"**{m.name}** · {alert.consecutive_absences} días sin asistir · "
                + ("Membresía vencida" if alert.membership.expired else "Membresía vigente")
            )
            last = alert.streak.last_attendance
            st.caption(
                f"Última asistencia: {utils.format_date(last) if last else 'Nunca'} · "
                f"Inicio de inasistencia: {utils.format_date(alert.streak.start_date) or 'Reciente'} · "
                f"Clase habitual: {m.class_time or 'No definida'}"
            )
            reminder_button("Recordar por WhatsApp", m.phone, messaging.absence_reminder_message(m, alert.membership))

    st.divider()

    st.subheader("Historial")
    c1, c2, c3 = st.columns(3)
    with c1:
        start = st.date_input("Desde", value=None, key="att_from")
    with c2:
        end = st.date_input("Hasta", value=None, key="att_to")
    with c3:
        options = {"Todos los usuarios": ""} | {m.name: str(m.id) for m in users.selectable()}
        member_id = options[st.selectbox("Usuario", list(options), key="att_member")]
    history = reports.attendance_history(
        attendance.all(),
        users,
        start.isoformat() if start else None,
        end.isoformat() if end else None,
        member_id,
    )
    st.dataframe(history, use_container_width=True, hide_index=True)

    if st.session_state.role == "admin" and not history.empty:
        to_delete = st.selectbox("Eliminar registro (ID)", ["(ninguno)"] + [str(i) for i in history["ID"]])
        if to_delete != "(ninguno)" and st.button("Eliminar registro"):
            try:
                attendance.delete(to_delete)
            except StorageError as exc:
                show_errors(exc)
            else:
                st.success("Registro de asistencia eliminado correctamente.")
                st.rerun()


def payments_page(store, users, attendance, income):
    st.header("💳 Pagos")

    members = users.selectable()
    if not members:
        st.info("No hay usuarios todavía. Registre un usuario primero.")
        return

    st.subheader("Registrar pago")
    options = {member_label(m): m.id for m in members}
    c1, c2, c3 = st.columns(3)
    with c1:
        member_id = options[st.selectbox("Usuario", list(options))]
        payment_type = st.selectbox("Tipo de pago", PAYMENT_TYPES)
    with c2:
        start_date = st.date_input("Fecha de inicio", value=date.today())
        end_date = st.date_input("Fecha de fin", value=date.today() + timedelta(days=30))
    with c3:
        amount = st.text_input("Monto", value="0")
        description = st.text_input("Descripción", value="")

    if st.button("Registrar pago", type="primary"):
        try:
            payment = income.add(
                member_id,
                start_date=start_date.isoformat(),
                end_date=end_date.isoformat(),
                payment_type=payment_type,
                amount=amount,
                description=description.strip(),
            )
        except (ValidationError, StorageError) as exc:
            show_errors(exc)
        else:
            st.success("Pago registrado correctamente.")
            member = users.get(member_id)
            message = messaging.payment_confirmation_message(member, payment)
            st.text_area("Mensaje de confirmación", value=message, disabled=True)
            reminder_button("Enviar confirmación por WhatsApp", member.phone, message)

    st.divider()

    st.subheader("Historial de pagos")
    c1, c2, c3 = st.columns(3)
    with c1:
        start = st.date_input("Desde", value=None, key="inc_from")
    with c2:
        end = st.date_input("Hasta", value=None, key="inc_to")
    with c3:
        filters = {"Todos los usuarios": ""} | {m.name: str(m.id) for m in members}
        filter_member = filters[st.selectbox("Usuario", list(filters), key="inc_member")]

    records = income.filter_by_date_range(start.isoformat() if start else None, end.isoformat() if end else None)
    if filter_member:
        records = [r for r in records if r.member_id == filter_member]
        status = get_membership_status(filter_member, income.all(), attendance.all())
        st.info(f"Membresía de {users.display_name(filter_member)}: {status_text(status)} ({status.payment_type})")

    st.dataframe(reports.income_history(records, users), use_container_width=True, hide_index=True)
    st.metric("Total", utils.format_currency(income.total(records)))

    if records:
        to_delete = st.selectbox("Eliminar pago (ID)", ["(ninguno)"] + [str(r.id) for r in records])
        if to_delete != "(ninguno)" and st.button("Eliminar pago"):
            try:
                income.delete(to_delete)
            except StorageError as exc:
                show_errors(exc)
            else:
                st.success("Registro de pago eliminado correctamente.")
                st.rerun()


def reports_page(store, users, attendance, income):
    st.header("🧾 Reportes")

    c1, c2 = st.columns(2)
    with c1:
        st.subheader("Tipo de afiliación")
        dist = reports.affiliation_distribution(users.all())
        if not dist.empty:
            st.bar_chart(dist, x="Tipo Afiliación", y="Usuarios")
    with c2:
        st.subheader("Asistencia por clase")
        st.bar_chart(reports.attendance_by_class(users.all(), attendance.all()), x="Horario", y="Asistencias")

    st.divider()

    today = date.today()
    st.subheader("Asistencias mensuales")
    c1, c2 = st.columns(2)
    year = c1.number_input("Año", min_value=2000, max_value=2100, value=today.year, key="att_year")
    month = c2.number_input("Mes", min_value=1, max_value=12, value=today.month, key="att_month")
    monthly = reports.monthly_attendance_report(users.all(), attendance.all(), int(year), int(month))
    st.dataframe(monthly, use_container_width=True, hide_index=True)
    st.download_button(
        "Exportar asistencias (.xlsx)",
        data=reports.report_to_excel_bytes(monthly, "Asistencias"),
        file_name=f"asistencias_{int(year)}-{int(month):02d}.xlsx",
    )

    st.divider()

    st.subheader("Pagos mensuales por tipo")
    c1, c2 = st.columns(2)
    year = c1.number_input("Año", min_value=2000, max_value=2100, value=today.year, key="inc_year")
    month = c2.number_input("Mes", min_value=1, max_value=12, value=today.month, key="inc_month")
    by_type, totals = reports.monthly_income_report(income.all(), int(year), int(month))
    if by_type.empty:
        st.caption("No hay pagos registrados en este mes.")
    else:
        st.dataframe(by_type, use_container_width=True, hide_index=True)
    st.write(f"Pagos: **{totals['count']}** · Total: **{utils.format_currency(totals['amount'])}**")
    st.download_button(
        "Exportar pagos (.xlsx)",
        data=reports.report_to_excel_bytes(by_type, "Pagos"),
        file_name=f"pagos_{int(year)}-{int(month):02d}.xlsx",
    )

    st.divider()

    st.subheader("Reporte combinado")
    c1, c2, c3 = st.columns(3)
    with c1:
        options = {"Todos los usuarios": ""} | {m.name: str(m.id) for m in users.selectable()}
        member_id = options[st.selectbox("Usuario", list(options), key="comb_member")]
    with c2:
        start = st.date_input("Desde", value=today.replace(day=1), key="comb_from").isoformat()
    with c3:
        end = st.date_input("Hasta", value=today, key="comb_to").isoformat()
    combined = reports.combined_report(users.all(), attendance.all(), income.all(), start, end, member_id)
    st.dataframe(combined, use_container_width=True, hide_index=True)
    st.download_button(
        "Exportar reporte combinado (.xlsx)",
        data=reports.report_to_excel_bytes(combined, "Reporte"),
        file_name=f"reporte_{start}_{end}.xlsx",
    )


def backup_page(store, users, attendance, income):
    st.header("💾 Respaldo")

    info = reports.system_info(users.all(), attendance.all(), income.all(), store.get(db.LAST_BACKUP, None))
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Usuarios activos", info["users"])
    c2.metric("Asistencias", info["attendance"])
    c3.metric("Pagos", info["income"])
    c4.metric("Último respaldo", info["last_backup"])

    st.subheader("Exportar a Excel")
    if st.button("Preparar archivo"):
        st.session_state.export_bytes = backup.export_workbook(users, attendance, income)
        st.session_state.export_name = backup.backup_filename()
    if st.session_state.get("export_bytes"):
        st.download_button(
            "Descargar respaldo",
            data=st.session_state.export_bytes,
            file_name=st.session_state.export_name,
            mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )

    st.divider()

    st.subheader("Importar desde Excel")
    uploaded = st.file_uploader("Archivo con hojas Usuarios, Asistencias y Pagos", type=["xlsx", "xls"])
    mode = st.radio("Modo", ["merge", "replace"], format_func=lambda m: "Combinar" if m == "merge" else "Reemplazar todo")
    if uploaded is not None and st.button("Importar", type="primary"):
        try:
            data = backup.read_workbook(uploaded.getvalue())
        except ImportFormatError as exc:
            st.error(str(exc))
        else:
            try:
                added = backup.apply_import(users, attendance, income, data, mode=mode)
            except StorageError as exc:
                show_errors(exc)
            else:
                summary = data.summary
                st.success(
                    f"Importación completa: {sum(added.values())} registros agregados, "
                    f"{summary.total_accepted} válidos, {summary.total_rejected} descartados."
                )

    st.divider()

    st.subheader("Copia de seguridad interna")
    auto = st.toggle("Respaldo automático diario", value=backup.is_auto_backup_enabled(store))
    if auto != backup.is_auto_backup_enabled(store):
        backup.set_auto_backup(store, auto)

    c1, c2 = st.columns(2)
    with c1:
        if st.button("Crear copia ahora"):
            try:
                snapshot = backup.create_snapshot(store)
            except StorageError as exc:
                show_errors(exc)
            else:
                st.success(f"Copia creada: {snapshot['timestamp']}")
        snapshot = store.get(db.GYM_SYSTEM_BACKUP, None)
        if snapshot:
            st.download_button("Descargar copia (.json)", data=backup.snapshot_to_json(snapshot), file_name="gym_backup.json")
    with c2:
        restore_confirm = st.checkbox("Confirmar restauración")
        if st.button("Restaurar última copia", disabled=not restore_confirm):
            if backup.restore_snapshot(store):
                st.success("Datos restaurados.")
                st.rerun()
            else:
                st.error("No hay una copia válida para restaurar.")
        json_file = st.file_uploader("Restaurar desde archivo .json", type=["json"])
        if json_file is not None and st.button("Restaurar archivo", disabled=not restore_confirm):
            try:
                restored = backup.restore_snapshot(store, backup.snapshot_from_json(json_file.getvalue()))
            except ImportFormatError as exc:
                st.error(str(exc))
            else:
                if restored:
                    st.success("Datos restaurados.")
                    st.rerun()
                else:
                    st.error("No se pudieron guardar los datos restaurados.")


def settings_page(store, users, attendance, income):
    st.header("⚙️ Configuración")

    st.subheader("Cambiar contraseña")
    p1 = st.text_input("Nueva contraseña", type="password")
    p2 = st.text_input("Confirmar nueva contraseña", type="password")
    if st.button("Actualizar contraseña", type="primary"):
        if len(p1) < 6:
            st.error("La contraseña debe tener al menos 6 caracteres.")
        elif p1 != p2:
            st.error("Las contraseñas no coinciden.")
        else:
            auth.change_password(st.session_state.username, p1)
            st.success("Contraseña actualizada.")

    st.divider()

    st.subheader("Datos de ejemplo")
    st.caption("Agrega 3 usuarios con pagos y asistencias de prueba (cada vez agrega filas nuevas).")
    if st.button("Insertar datos de ejemplo"):
        try:
            utils.insert_sample_data(users, attendance, income)
        except StorageError as exc:
            show_errors(exc)
        else:
            st.success("Datos de ejemplo insertados.")
            st.rerun()

    st.divider()

    st.subheader("Borrar todos los datos")
    confirm = st.checkbox("Entiendo que esto elimina usuarios, asistencias y pagos")
    if st.button("Borrar todo", disabled=not confirm):
        if store.clear():
            st.success("Datos eliminados.")
            st.rerun()
        else:
            st.error("No se pudieron borrar los datos.")


PAGES = {
    "Inicio": dashboard_page,
    "Usuarios": users_page,
    "Asistencia": attendance_page,
    "Pagos": payments_page,
    "Reportes": reports_page,
    "Respaldo": backup_page,
    "Configuración": settings_page,
}


def main_app(store: db.RecordStore):
    st.sidebar.title("🏋️ Gimnasio")
    st.sidebar.caption(f"Sesión: {st.session_state.username} ({st.session_state.role})")

    pages = auth.allowed_pages(st.session_state.role)
    if st.session_state.get("page") not in pages:
        st.session_state.page = pages[0]
    st.session_state.page = st.sidebar.radio("Navegar", pages, index=pages.index(st.session_state.page))

    if st.sidebar.button("Cerrar sesión"):
        logout()
        st.rerun()

    users, attendance, income = load_repos(store)
    PAGES[st.session_state.page](store, users, attendance, income)


# --------- App entry ---------

def run():
    store = init_once()
    require_login()

    if not st.session_state.logged_in:
        login_screen()
        return

    main_app(store)


if __name__ == "__main__":
    run()
