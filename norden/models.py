import uuid
from datetime import datetime
from decimal import Decimal
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Date,
    DateTime,
    Numeric,
    ForeignKey,
)
from sqlalchemy.orm import declarative_base, relationship, validates
from flask_login import UserMixin

Base = declarative_base()

ADMIN_USER_ID = "admin"

SECTIONS = ["hero", "carousel"]
SECTION_LABELS = {"hero": "Portada (Hero)", "carousel": "Carrusel de Fotos"}


def new_id() -> str:
    return uuid.uuid4().hex


class AdminUser(UserMixin):
    """The single shared admin account. It has no row; the password lives in config."""
    id = ADMIN_USER_ID


class Event(Base):
    __tablename__ = "events"
    id = Column(String(32), primary_key=True, default=new_id)
    date = Column(Date, nullable=False, index=True)
    address = Column(String(255), nullable=False, default="")
    event_time = Column(String(5), nullable=False, default="")  # HH:MM
    manager_name = Column(String(120), nullable=False, default="")
    venue_name = Column(String(120), nullable=False, default="")
    reminder = Column(String(255), nullable=False, default="")
    agreed_price = Column(Numeric(12, 2), nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    expenses = relationship(
        "Expense",
        back_populates="event",
        cascade="all, delete-orphan",
        order_by="Expense.position",
    )


class Expense(Base):
    __tablename__ = "expenses"
    id = Column(String(32), primary_key=True, default=new_id)
    event_id = Column(String(32), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    type = Column(String(120), nullable=False, default="")
    quantity = Column(Numeric(12, 2), nullable=False, default=0)
    unit_price = Column(Numeric(12, 2), nullable=False, default=0)
    # quantity * unit_price; rows loaded from the database keep whatever was stored
    total = Column(Numeric(14, 2), nullable=False, default=0)

    event = relationship("Event", back_populates="expenses")

    @validates("quantity", "unit_price")
    def _recompute_total(self, key, value):
        value = Decimal(str(value if value is not None else 0))
        other = self.unit_price if key == "quantity" else self.quantity
        self.total = value * Decimal(str(other if other is not None else 0))
        return value


class SiteAsset(Base):
    __tablename__ = "site_assets"
    id = Column(String(32), primary_key=True, default=new_id)
    url = Column(String(600), nullable=False)
    storage_path = Column(String(600), nullable=False)
    section = Column(String(32), nullable=False, index=True)  # "hero" or "carousel"
    display_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)


class SiteContent(Base):
    __tablename__ = "site_content"
    id = Column(String(32), primary_key=True, default=new_id)
    key = Column(String(64), unique=True, nullable=False)
    label = Column(String(120), nullable=False, default="")
    value = Column(Text, nullable=False, default="")
    section = Column(String(64), nullable=False, default="general")
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


class GalleryFolder(Base):
    __tablename__ = "gallery_folders"
    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String(120), nullable=False)
    description = Column(Text, nullable=False, default="")
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    # no delete cascade: removing a folder leaves its items unassigned
    items = relationship("GalleryItem", back_populates="folder")


class GalleryItem(Base):
    __tablename__ = "gallery_content"
    id = Column(String(32), primary_key=True, default=new_id)
    url = Column(String(600), nullable=False)
    storage_path = Column(String(600), nullable=False)
    type = Column(String(10), nullable=False, default="image")  # "image" or "video"
    title = Column(String(200), nullable=False, default="")
    description = Column(Text, nullable=False, default="")
    folder_id = Column(String(32), ForeignKey("gallery_folders.id", ondelete="SET NULL"), nullable=True, index=True)
    display_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    folder = relationship("GalleryFolder", back_populates="items")
