import logging
from datetime import date
from flask import Blueprint, render_template, redirect, request, current_app, send_from_directory, url_for

from . import media_store, services
from .defaults import (
    DEFAULT_CAROUSEL_IMAGES,
    DEFAULT_HERO_IMAGE,
    INCLUDED_SERVICES,
    OPTIONAL_SERVICES,
    default_content_values,
)
from .forms import QuoteForm
from .messaging import quote_link

bp = Blueprint("site", __name__)

log = logging.getLogger(__name__)


@bp.route("/", methods=["GET", "POST"])
def home():
    db = current_app.db_session
    assets = services.load_assets(db)

    hero = next((a.url for a in assets if a.section == "hero"), None)
    carousel = [a.url for a in assets if a.section == "carousel"]
    if hero is None:
        hero = url_for("static", filename=DEFAULT_HERO_IMAGE)
    if not carousel:
        carousel = [url_for("static", filename=p) for p in DEFAULT_CAROUSEL_IMAGES]

    text = default_content_values()
    text.update(services.content_values(db))

    form = QuoteForm()
    if form.validate_on_submit():
        log.info("Quote request from %s", form.email.data)
        return redirect(quote_link(current_app.config["WHATSAPP_NUMBER"], form.answers()))

    return render_template(
        "home.html",
        hero=hero,
        carousel=carousel,
        text=text,
        form=form,
        included=INCLUDED_SERVICES,
        optional=OPTIONAL_SERVICES,
        year=date.today().year,
    )


@bp.route("/galeria")
def gallery():
    db = current_app.db_session
    folders = services.load_folders(db)
    items = services.load_gallery(db)

    active = request.args.get("folder")
    if not active and folders:
        active = folders[0].id
    shown = [i for i in items if i.folder_id == (active or None)]

    return render_template(
        "gallery.html",
        folders=folders,
        active=active,
        items=shown,
        year=date.today().year,
    )


@bp.route("/media/<path:filename>")
def media(filename):
    resp = send_from_directory(media_store.root, filename)
    resp.headers["Cache-Control"] = "public, max-age=2592000, immutable"
    return resp
