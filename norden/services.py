"""
Persistence for everything the admin edits.

Every function takes the request's SQLAlchemy session and commits its own
work. On failure the session is rolled back and the error is re-raised for
the view to report.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError

from .errors import NotFound, UploadError
from .finance import expense_total
from .models import (
    Event,
    Expense,
    SiteAsset,
    SiteContent,
    GalleryFolder,
    GalleryItem,
    SECTIONS,
    new_id,
)
from .defaults import DEFAULT_CONTENT
from .storage import media_type

log = logging.getLogger(__name__)


# -------------------- typed event data --------------------

@dataclass
class ExpenseData:
    type: str
    quantity: Decimal
    unit_price: Decimal

    @property
    def total(self) -> Decimal:
        return expense_total(self.quantity, self.unit_price)


@dataclass
class EventData:
    """A fully validated event, ready to be written. Built by EventForm.to_data()."""
    date: date
    address: str = ""
    event_time: str = ""
    manager_name: str = ""
    venue_name: str = ""
    reminder: str = ""
    agreed_price: Decimal = Decimal("0")
    # None leaves stored expenses untouched; a list (even empty) replaces them
    expenses: list[ExpenseData] | None = field(default_factory=list)


def _commit(db):
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise


def _add_uploaded(db, storage, row):
    """Insert the row for a just-stored object. The object is removed again if the insert fails."""
    try:
        db.add(row)
        _commit(db)
    except SQLAlchemyError:
        storage.remove(row.storage_path)
        raise


# -------------------- events --------------------

def load_events(db) -> list[Event]:
    return db.execute(
        select(Event).order_by(Event.date, Event.created_at)
    ).scalars().all()


def get_event(db, event_id: str) -> Event:
    event = db.get(Event, event_id)
    if event is None:
        raise NotFound(f"Event {event_id} not found")
    return event


def save_event(db, data: EventData, event_id: str | None = None) -> Event:
    """
    Insert or update the event keyed by `event_id`, then replace its expenses
    with `data.expenses`. Both steps share one transaction.
    """
    try:
        event = db.get(Event, event_id) if event_id else None
        if event is None:
            event = Event(id=event_id or new_id())
            db.add(event)

        event.date = data.date
        event.address = data.address
        event.event_time = data.event_time
        event.manager_name = data.manager_name
        event.venue_name = data.venue_name
        event.reminder = data.reminder
        event.agreed_price = data.agreed_price

        if data.expenses is not None:
            event.expenses.clear()
            db.flush()
            for position, line in enumerate(data.expenses):
                event.expenses.append(
                    Expense(
                        id=new_id(),
                        position=position,
                        type=line.type,
                        quantity=line.quantity,
                        unit_price=line.unit_price,
                    )
                )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    log.info("Saved event %s (%s, %d expenses)", event.id, event.date, len(event.expenses))
    return event


def delete_event(db, event_id: str) -> None:
    event = get_event(db, event_id)
    db.delete(event)
    _commit(db)
    log.info("Deleted event %s", event_id)


# -------------------- site assets --------------------

def load_assets(db, section: str | None = None) -> list[SiteAsset]:
    q = select(SiteAsset)
    if section:
        q = q.where(SiteAsset.section == section)
    return db.execute(
        q.order_by(SiteAsset.display_order, SiteAsset.created_at)
    ).scalars().all()


def _next_order(db, column, *where) -> int:
    current = db.scalar(select(func.max(column)).where(*where))
    return 0 if current is None else current + 1


def upload_site_asset(db, storage, file_storage, section: str) -> SiteAsset:
    if section not in SECTIONS:
        raise UploadError(f"Unknown section {section!r}")

    order = _next_order(db, SiteAsset.display_order, SiteAsset.section == section)
    path = storage.save(file_storage, section)
    asset = SiteAsset(
        url=storage.public_url(path),
        storage_path=path,
        section=section,
        display_order=order,
    )
    _add_uploaded(db, storage, asset)
    log.info("Added %s asset %s", section, asset.id)
    return asset


def delete_site_asset(db, storage, asset_id: str) -> None:
    asset = db.get(SiteAsset, asset_id)
    if asset is None:
        raise NotFound(f"Asset {asset_id} not found")
    section = asset.section
    # object first: if the store fails the row stays
    storage.remove(asset.storage_path)
    db.delete(asset)
    _commit(db)
    log.info("Deleted %s asset %s", section, asset_id)


# -------------------- site content --------------------

def load_content(db) -> list[SiteContent]:
    return db.execute(
        select(SiteContent).order_by(SiteContent.section, SiteContent.key)
    ).scalars().all()


def content_values(db) -> dict[str, str]:
    return {c.key: c.value for c in load_content(db)}


def update_site_content(db, values: dict[str, str]) -> int:
    """Write new values for existing keys. Returns how many changed."""
    changed = 0
    for entry in load_content(db):
        if entry.key in values and values[entry.key] != entry.value:
            entry.value = values[entry.key]
            changed += 1
    _commit(db)
    log.info("Updated %d site content entries", changed)
    return changed


def seed_site_content(db) -> int:
    existing = set(db.execute(select(SiteContent.key)).scalars())
    added = 0
    for key, label, section, value in DEFAULT_CONTENT:
        if key not in existing:
            db.add(SiteContent(key=key, label=label, section=section, value=value))
            added += 1
    _commit(db)
    return added


# -------------------- gallery --------------------

def load_folders(db) -> list[GalleryFolder]:
    return db.execute(select(GalleryFolder).order_by(GalleryFolder.name)).scalars().all()


def load_gallery(db) -> list[GalleryItem]:
    return db.execute(
        select(GalleryItem).order_by(GalleryItem.display_order.desc(), GalleryItem.created_at.desc())
    ).scalars().all()


def _check_folder(db, folder_id: str | None) -> str | None:
    if not folder_id:
        return None
    if db.get(GalleryFolder, folder_id) is None:
        raise NotFound(f"Folder {folder_id} not found")
    return folder_id


def create_folder(db, name: str, description: str = "") -> GalleryFolder:
    folder = GalleryFolder(name=name.strip(), description=(description or "").strip())
    db.add(folder)
    _commit(db)
    log.info("Created gallery folder %s (%s)", folder.id, folder.name)
    return folder


def delete_folder(db, folder_id: str) -> None:
    folder = db.get(GalleryFolder, folder_id)
    if folder is None:
        raise NotFound(f"Folder {folder_id} not found")
    db.delete(folder)
    _commit(db)
    log.info("Deleted gallery folder %s", folder_id)


def upload_gallery_item(db, storage, file_storage, title: str = "", description: str = "",
                        folder_id: str | None = None) -> GalleryItem:
    folder_id = _check_folder(db, folder_id)
    order = _next_order(db, GalleryItem.display_order)
    path = storage.save(file_storage, "gallery")
    item = GalleryItem(
        url=storage.public_url(path),
        storage_path=path,
        type=media_type(file_storage.filename, file_storage.mimetype),
        title=(title or "").strip(),
        description=(description or "").strip(),
        folder_id=folder_id,
        display_order=order,
    )
    _add_uploaded(db, storage, item)
    log.info("Added gallery %s %s", item.type, item.id)
    return item


def update_gallery_item(db, item_id: str, title: str, description: str,
                        folder_id: str | None) -> GalleryItem:
    item = db.get(GalleryItem, item_id)
    if item is None:
        raise NotFound(f"Gallery item {item_id} not found")
    folder_id = _check_folder(db, folder_id)
    item.title = (title or "").strip()
    item.description = (description or "").strip()
    item.folder_id = folder_id
    _commit(db)
    return item


def delete_gallery_item(db, storage, item_id: str) -> None:
    item = db.get(GalleryItem, item_id)
    if item is None:
        raise NotFound(f"Gallery item {item_id} not found")
    storage.remove(item.storage_path)
    db.delete(item)
    _commit(db)
    log.info("Deleted gallery item %s", item_id)
