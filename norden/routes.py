import logging
from collections import defaultdict
from datetime import date
from urllib.parse import urlsplit
from flask import Blueprint, render_template, redirect, url_for, flash, request, current_app
from flask_login import login_user, logout_user, login_required, current_user
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.security import check_password_hash

from . import media_store
from .errors import NordenError, NotFound
from .finance import (
    event_expenses_total,
    event_profit,
    events_on,
    total_income,
    total_expenses,
    total_cash_flow,
    cash_flow_by_month,
    margin_percent,
    upcoming_reminders,
)
from .forms import (
    LoginForm,
    EventForm,
    AssetUploadForm,
    FolderForm,
    GalleryUploadForm,
    GalleryItemForm,
    folder_choices,
    content_form_for,
)
from .messaging import reminder_link
from .models import AdminUser, Event, SECTIONS, SECTION_LABELS
from . import services
from .utils import (
    MONTH_NAMES,
    WEEKDAY_LABELS,
    calendar_cells,
    current_month_str,
    iso_day,
    month_str,
    parse_day,
    parse_month,
)

bp = Blueprint("admin", __name__, url_prefix="/admin")

log = logging.getLogger(__name__)

# -------------------- helpers --------------------


def _db():
    return current_app.db_session


def _failed(message: str):
    """Roll back, log, and tell the admin. Call from inside the except block."""
    _db().rollback()
    log.exception(message)
    flash(message, "danger")


def _safe_next(target: str | None) -> str | None:
    if not target:
        return None
    parts = urlsplit(target)
    if parts.scheme or parts.netloc or not target.startswith("/"):
        return None
    return target


@bp.context_processor
def inject_cash_flow():
    if not current_user.is_authenticated:
        return {}
    return {"header_cash_flow": total_cash_flow(services.load_events(_db()))}


# -------------------- Auth --------------------

@bp.route("/login", methods=["GET", "POST"])
def login():
    if current_user.is_authenticated:
        return redirect(url_for("admin.index"))
    form = LoginForm()
    if form.validate_on_submit():
        if check_password_hash(current_app.config["ADMIN_PASSWORD_HASH"], form.password.data):
            login_user(AdminUser())
            log.info("Admin logged in from %s", request.remote_addr)
            return redirect(_safe_next(request.args.get("next")) or url_for("admin.index"))
        log.warning("Rejected admin password from %s", request.remote_addr)
        flash("Contraseña incorrecta", "danger")
    return render_template("admin/login.html", form=form)


@bp.route("/logout")
@login_required
def logout():
    logout_user()
    flash("Sesión cerrada.", "info")
    return redirect(url_for("admin.login"))


@bp.route("/")
@login_required
def index():
    return render_template("admin/index.html")


# -------------------- Calendar --------------------

@bp.route("/calendar")
@login_required
def calendar_view():
    today = date.today()
    year, month = parse_month(request.args.get("month")) or parse_month(current_month_str(today))

    events = services.load_events(_db())
    by_day = defaultdict(list)
    for e in events:
        by_day[iso_day(e.date)].append(e)

    cells = []
    for day in calendar_cells(year, month):
        if day is None:
            cells.append(None)
            continue
        key = iso_day(date(year, month + 1, day))
        cells.append({"day": day, "date": key, "events": by_day.get(key, []), "today": key == iso_day(today)})

    reminders = upcoming_reminders(events, today, current_app.config["REMINDER_LEAD_DAYS"])

    return render_template(
        "admin/calendar.html",
        cells=cells,
        weekdays=WEEKDAY_LABELS,
        title=f"{MONTH_NAMES[month]} {year}",
        prev_month=month_str(year, month - 1),
        next_month=month_str(year, month + 1),
        today=iso_day(today),
        reminders=reminders,
    )


@bp.route("/calendar/day/<day>")
@login_required
def calendar_day(day: str):
    parsed = parse_day(day)
    if parsed is None:
        flash("Fecha inválida.", "warning")
        return redirect(url_for("admin.calendar_view"))
    existing = events_on(services.load_events(_db()), parsed)
    if existing:
        return redirect(url_for("admin.event_edit", event_id=existing[0].id))
    return redirect(url_for("admin.event_new", date=iso_day(parsed)))


# -------------------- Events --------------------

def _event_form_response(form: EventForm, event=None):
    """Shared POST handling for the new/edit event screens."""
    if request.method == "POST":
        if form.add_expense.data:
            form.add_expense_row()
            return _render_event(form, event)
        remove = request.form.get("remove_expense")
        if remove is not None:
            if remove.isdigit():
                form.remove_expense_row(int(remove))
            return _render_event(form, event)

    if form.validate_on_submit():
        try:
            saved = services.save_event(_db(), form.to_data(), event.id if event else None)
        except SQLAlchemyError:
            _failed("Error al guardar el evento")
            return _render_event(form, event)
        flash("Evento guardado.", "success")
        return redirect(url_for("admin.calendar_view", month=iso_day(saved.date)[:7]))

    return _render_event(form, event)


def _render_event(form, event):
    return render_template("admin/event_form.html", form=form, event=event)


@bp.route("/events/new", methods=["GET", "POST"])
@login_required
def event_new():
    form = EventForm()
    if request.method == "GET":
        form.date.data = parse_day(request.args.get("date")) or date.today()
    return _event_form_response(form)


@bp.route("/events/<event_id>", methods=["GET", "POST"])
@login_required
def event_edit(event_id: str):
    event = _db().get(Event, event_id)
    if event is None:
        flash("Evento no encontrado.", "warning")
        return redirect(url_for("admin.calendar_view"))
    form = EventForm(obj=event) if request.method == "GET" else EventForm()
    return _event_form_response(form, event)


@bp.route("/events/<event_id>/delete", methods=["POST"])
@login_required
def event_delete(event_id: str):
    try:
        services.delete_event(_db(), event_id)
    except NotFound:
        flash("Evento no encontrado.", "warning")
        return redirect(url_for("admin.calendar_view"))
    except SQLAlchemyError:
        _failed("Error al eliminar el evento")
        return redirect(url_for("admin.event_edit", event_id=event_id))
    flash("Evento eliminado.", "info")
    return redirect(url_for("admin.calendar_view"))


@bp.route("/events/<event_id>/remind")
@login_required
def event_remind(event_id: str):
    event = _db().get(Event, event_id)
    if event is None:
        flash("Evento no encontrado.", "warning")
        return redirect(url_for("admin.calendar_view"))
    log.info("Opening WhatsApp reminder for event %s", event_id)
    return redirect(reminder_link(current_app.config["WHATSAPP_NUMBER"], event))


# -------------------- Financial dashboard --------------------

@bp.route("/dashboard")
@login_required
def dashboard():
    events = services.load_events(_db())
    rows = [
        {"event": e, "expenses": event_expenses_total(e), "profit": event_profit(e)}
        for e in events
    ]
    return render_template(
        "admin/dashboard.html",
        rows=rows,
        income=total_income(events),
        expenses=total_expenses(events),
        cash_flow=total_cash_flow(events),
        margin=margin_percent(events),
        by_month=cash_flow_by_month(events),
        month_names=MONTH_NAMES,
    )


# -------------------- Multimedia (landing page) --------------------

@bp.route("/media")
@login_required
def media():
    db = _db()
    sections = [
        {"key": s, "label": SECTION_LABELS[s], "assets": services.load_assets(db, s)}
        for s in SECTIONS
    ]
    return render_template("admin/media.html", sections=sections, form=AssetUploadForm())


@bp.route("/media/upload", methods=["POST"])
@login_required
def media_upload():
    form = AssetUploadForm()
    if not form.validate_on_submit():
        for errors in form.errors.values():
            for error in errors:
                flash(error, "warning")
        return redirect(url_for("admin.media"))
    try:
        services.upload_site_asset(_db(), media_store, form.file.data, form.section.data)
    except (NordenError, SQLAlchemyError):
        _failed("Error al subir el archivo")
    else:
        flash("Imagen subida.", "success")
    return redirect(url_for("admin.media"))


@bp.route("/media/<asset_id>/delete", methods=["POST"])
@login_required
def media_delete(asset_id: str):
    try:
        services.delete_site_asset(_db(), media_store, asset_id)
    except NotFound:
        flash("Imagen no encontrada.", "warning")
    except (NordenError, SQLAlchemyError):
        _failed("Error al eliminar la imagen")
    else:
        flash("Imagen eliminada.", "info")
    return redirect(url_for("admin.media"))


# -------------------- Gallery --------------------

@bp.route("/gallery")
@login_required
def gallery():
    db = _db()
    folders = services.load_folders(db)
    active = request.args.get("folder") or None
    items = services.load_gallery(db)
    if active:
        items = [i for i in items if i.folder_id == active]

    choices = folder_choices(folders)
    upload_form = GalleryUploadForm()
    upload_form.folder_id.choices = choices
    if active:
        upload_form.folder_id.data = active

    item_forms = []
    for item in items:
        f = GalleryItemForm(obj=item, formdata=None)
        f.folder_id.choices = choices
        f.folder_id.data = item.folder_id or ""
        item_forms.append((item, f))

    return render_template(
        "admin/gallery.html",
        folders=folders,
        active=active,
        item_forms=item_forms,
        upload_form=upload_form,
        folder_form=FolderForm(formdata=None),
    )


@bp.route("/gallery/folders", methods=["POST"])
@login_required
def gallery_folder_create():
    form = FolderForm()
    if not form.validate_on_submit():
        flash("La carpeta necesita un nombre.", "warning")
        return redirect(url_for("admin.gallery"))
    try:
        folder = services.create_folder(_db(), form.name.data, form.description.data)
    except SQLAlchemyError:
        _failed("Error al crear la carpeta")
        return redirect(url_for("admin.gallery"))
    flash("Carpeta creada.", "success")
    return redirect(url_for("admin.gallery", folder=folder.id))


@bp.route("/gallery/folders/<folder_id>/delete", methods=["POST"])
@login_required
def gallery_folder_delete(folder_id: str):
    try:
        services.delete_folder(_db(), folder_id)
    except NotFound:
        flash("Carpeta no encontrada.", "warning")
    except SQLAlchemyError:
        _failed("Error al eliminar la carpeta")
    else:
        flash("Carpeta eliminada.", "info")
    return redirect(url_for("admin.gallery"))


@bp.route("/gallery/upload", methods=["POST"])
@login_required
def gallery_upload():
    form = GalleryUploadForm()
    form.folder_id.choices = folder_choices(services.load_folders(_db()))
    if not form.validate_on_submit():
        for errors in form.errors.values():
            for error in errors:
                flash(error, "warning")
        return redirect(url_for("admin.gallery"))
    try:
        services.upload_gallery_item(
            _db(), media_store, form.file.data,
            title=form.title.data,
            description=form.description.data,
            folder_id=form.folder_id.data or None,
        )
    except (NordenError, SQLAlchemyError):
        _failed("Error al subir el archivo")
    else:
        flash("Archivo subido a la galería.", "success")
    return redirect(url_for("admin.gallery", folder=form.folder_id.data or None))


@bp.route("/gallery/items/<item_id>", methods=["POST"])
@login_required
def gallery_item_update(item_id: str):
    form = GalleryItemForm()
    if form.validate_on_submit():
        try:
            services.update_gallery_item(
                _db(), item_id, form.title.data, form.description.data, form.folder_id.data or None
            )
        except NotFound:
            flash("Elemento o carpeta no encontrado.", "warning")
        except SQLAlchemyError:
            _failed("Error al guardar el elemento")
        else:
            flash("Guardado.", "success")
    return redirect(url_for("admin.gallery", folder=request.args.get("folder") or None))


@bp.route("/gallery/items/<item_id>/delete", methods=["POST"])
@login_required
def gallery_item_delete(item_id: str):
    try:
        services.delete_gallery_item(_db(), media_store, item_id)
    except NotFound:
        flash("Elemento no encontrado.", "warning")
    except (NordenError, SQLAlchemyError):
        _failed("Error al eliminar el elemento")
    else:
        flash("Elemento eliminado.", "info")
    return redirect(url_for("admin.gallery", folder=request.args.get("folder") or None))


# -------------------- Site texts --------------------

@bp.route("/content", methods=["GET", "POST"])
@login_required
def content():
    db = _db()
    entries = services.load_content(db)
    form = content_form_for(entries)()
    if form.validate_on_submit():
        values = {e.key: form[f"content_{e.key}"].data or "" for e in entries}
        try:
            changed = services.update_site_content(db, values)
        except SQLAlchemyError:
            _failed("Error al guardar los textos")
        else:
            flash(f"Textos guardados ({changed} cambios).", "success")
            return redirect(url_for("admin.content"))

    grouped = defaultdict(list)
    for e in entries:
        grouped[e.section].append((e, form[f"content_{e.key}"]))
    return render_template("admin/content.html", form=form, grouped=grouped)
