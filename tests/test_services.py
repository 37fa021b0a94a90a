from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from norden import services
from norden.errors import NotFound, StorageError, UploadError
from norden.models import Event, Expense, GalleryFolder, GalleryItem, SiteAsset, SiteContent
from norden.services import EventData, ExpenseData


def _data(**overrides):
    fields = dict(
        date=date(2026, 11, 2),
        address="Ruta 8 km 50",
        event_time="20:30",
        manager_name="Marta",
        venue_name="Quinta Los Álamos",
        reminder="Llevar calefactores",
        agreed_price=Decimal("50000"),
        expenses=[
            ExpenseData("Flete", Decimal("2"), Decimal("500")),
            ExpenseData("Sillas", Decimal("1"), Decimal("3000")),
        ],
    )
    fields.update(overrides)
    return EventData(**fields)


# -------------------- events --------------------

def test_save_without_id_creates_event(db):
    event = services.save_event(db, _data())
    assert event.id

    stored = db.get(Event, event.id)
    assert stored.manager_name == "Marta"
    assert [e.type for e in stored.expenses] == ["Flete", "Sillas"]
    assert [e.total for e in stored.expenses] == [Decimal("1000"), Decimal("3000")]
    assert db.query(Event).count() == 1


def test_saving_again_updates_same_record(db):
    event_id = services.save_event(db, _data()).id
    services.save_event(db, _data(), event_id)

    assert db.query(Event).count() == 1
    stored = db.get(Event, event_id)
    assert (stored.date, stored.manager_name, stored.venue_name, stored.address) == (
        date(2026, 11, 2), "Marta", "Quinta Los Álamos", "Ruta 8 km 50")
    assert stored.agreed_price == Decimal("50000")
    assert len(stored.expenses) == 2


def test_save_replaces_expenses_with_fresh_ids(db):
    event = services.save_event(db, _data())
    old_ids = {e.id for e in event.expenses}

    services.save_event(db, _data(expenses=[ExpenseData("Luces", Decimal("3"), Decimal("100"))]), event.id)

    expenses = db.query(Expense).all()
    assert [(e.type, e.total) for e in expenses] == [("Luces", Decimal("300"))]
    assert not old_ids & {e.id for e in expenses}


def test_empty_expense_list_clears_and_none_keeps(db):
    event = services.save_event(db, _data())

    services.save_event(db, _data(manager_name="Ana", expenses=None), event.id)
    assert db.query(Expense).count() == 2

    services.save_event(db, _data(expenses=[]), event.id)
    assert db.query(Expense).count() == 0


def test_failed_save_keeps_previous_event_and_expenses(db, monkeypatch):
    event = services.save_event(db, _data())
    event_id = event.id

    def broken_commit(self):
        raise OperationalError("COMMIT", {}, Exception("connection lost"))

    monkeypatch.setattr(Session, "commit", broken_commit)
    with pytest.raises(OperationalError):
        services.save_event(db, _data(manager_name="Otro", expenses=[]), event_id)
    monkeypatch.undo()

    stored = db.get(Event, event_id)
    assert stored.manager_name == "Marta"
    assert len(stored.expenses) == 2


def test_save_with_unknown_id_inserts_under_that_id(db):
    event = services.save_event(db, _data(), "abc123")
    assert event.id == "abc123"
    assert db.get(Event, "abc123") is not None


def test_delete_event_removes_its_expenses(db):
    event_id = services.save_event(db, _data()).id
    services.delete_event(db, event_id)

    assert db.get(Event, event_id) is None
    assert db.query(Expense).count() == 0


def test_delete_missing_event(db):
    with pytest.raises(NotFound):
        services.delete_event(db, "missing")


def test_load_events_in_date_order(db):
    services.save_event(db, _data(date=date(2026, 12, 1), manager_name="B"))
    services.save_event(db, _data(date=date(2026, 1, 1), manager_name="A"))
    assert [e.manager_name for e in services.load_events(db)] == ["A", "B"]


# -------------------- site assets --------------------

def test_upload_site_asset_stores_file_and_row(db, store, make_upload):
    first = services.upload_site_asset(db, store, make_upload(), "carousel")
    second = services.upload_site_asset(db, store, make_upload("b.png", "image/png"), "carousel")
    hero = services.upload_site_asset(db, store, make_upload(), "hero")

    assert first.storage_path.startswith("carousel/")
    assert first.storage_path.endswith(".jpg")
    assert first.url == f"/media/{first.storage_path}"
    assert (store.root / first.storage_path).exists()
    assert (first.display_order, second.display_order, hero.display_order) == (0, 1, 0)
    assert [a.id for a in services.load_assets(db, "carousel")] == [first.id, second.id]


def test_upload_rejects_unknown_section_and_type(db, store, make_upload):
    with pytest.raises(UploadError):
        services.upload_site_asset(db, store, make_upload(), "services")
    with pytest.raises(UploadError):
        services.upload_site_asset(db, store, make_upload("notes.txt", "text/plain"), "hero")
    assert db.query(SiteAsset).count() == 0


def test_failed_upload_insert_removes_stored_object(db, store, make_upload, monkeypatch):
    def broken_commit(self):
        raise OperationalError("COMMIT", {}, Exception("connection lost"))

    monkeypatch.setattr(Session, "commit", broken_commit)
    with pytest.raises(OperationalError):
        services.upload_site_asset(db, store, make_upload(), "hero")
    with pytest.raises(OperationalError):
        services.upload_gallery_item(db, store, make_upload("clip.mp4", "video/mp4"))
    monkeypatch.undo()

    assert list(store.root.rglob("*.*")) == []
    assert db.query(SiteAsset).count() == 0
    assert db.query(GalleryItem).count() == 0


def test_delete_site_asset_removes_object_then_row(db, store, make_upload):
    asset = services.upload_site_asset(db, store, make_upload(), "hero")
    path = store.root / asset.storage_path

    services.delete_site_asset(db, store, asset.id)
    assert not path.exists()
    assert db.query(SiteAsset).count() == 0


# -------------------- gallery --------------------

def test_gallery_upload_detects_videos(db, store, make_upload):
    video = services.upload_gallery_item(db, store, make_upload("clip.mp4", "video/mp4"), title=" Armado ")
    image = services.upload_gallery_item(db, store, make_upload())

    assert video.type == "video"
    assert video.title == "Armado"
    assert video.storage_path.startswith("gallery/")
    assert image.type == "image"


def test_delete_gallery_item_removes_object_and_row(db, store, make_upload):
    item = services.upload_gallery_item(db, store, make_upload())
    path = store.root / item.storage_path

    services.delete_gallery_item(db, store, item.id)
    assert not path.exists()
    assert db.get(GalleryItem, item.id) is None


def test_gallery_row_survives_storage_failure(db, store, make_upload, monkeypatch):
    item = services.upload_gallery_item(db, store, make_upload())
    item_id = item.id

    def broken_remove(path):
        raise StorageError(f"Could not remove {path}")

    monkeypatch.setattr(store, "remove", broken_remove)
    with pytest.raises(StorageError):
        services.delete_gallery_item(db, store, item_id)

    assert db.get(GalleryItem, item_id) is not None


def test_deleting_folder_unassigns_items(db, store, make_upload):
    folder = services.create_folder(db, "  Bodas ", "Casamientos")
    assert folder.name == "Bodas"
    item = services.upload_gallery_item(db, store, make_upload(), folder_id=folder.id)

    services.delete_folder(db, folder.id)

    assert db.query(GalleryFolder).count() == 0
    assert db.get(GalleryItem, item.id).folder_id is None


def test_update_gallery_item(db, store, make_upload):
    folder = services.create_folder(db, "Corporativos")
    item = services.upload_gallery_item(db, store, make_upload())

    services.update_gallery_item(db, item.id, "Gala", "Noche de gala", folder.id)
    stored = db.get(GalleryItem, item.id)
    assert (stored.title, stored.description, stored.folder_id) == ("Gala", "Noche de gala", folder.id)

    with pytest.raises(NotFound):
        services.update_gallery_item(db, item.id, "Gala", "", "no-such-folder")


def test_folders_sorted_by_name(db):
    services.create_folder(db, "Quinceañeras")
    services.create_folder(db, "Bodas")
    assert [f.name for f in services.load_folders(db)] == ["Bodas", "Quinceañeras"]


# -------------------- site content --------------------

def test_seed_site_content_only_adds_missing(db):
    added = services.seed_site_content(db)
    assert added == db.query(SiteContent).count()
    assert services.seed_site_content(db) == 0


def test_update_site_content_edits_in_place(db):
    services.seed_site_content(db)
    changed = services.update_site_content(db, {"hero_title": "NORDEN ZELT", "unknown": "x"})

    assert changed == 1
    values = services.content_values(db)
    assert values["hero_title"] == "NORDEN ZELT"
    assert "unknown" not in values
