import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String
from .database import Base # Import the Base class from our database setup


def new_id():
    """Opaque identifier assigned to every new record."""
    return uuid.uuid4().hex


def utcnow():
    return datetime.now(timezone.utc)


def name_key(name: str) -> str:
    """Case-folded form of an item name, used for uniqueness checks."""
    return name.casefold()


# Defines the ORM model for a stock item in the database.
class StockItem(Base):
    # The name of the database table.
    __tablename__ = "stock_items"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_stock_items_quantity_non_negative"),
    )

    # Define the table columns.
    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String, nullable=False, index=True)
    name_key = Column(String, nullable=False, unique=True) # Case-insensitive uniqueness.
    quantity = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "quantity": self.quantity,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }


# Shared admin credentials. Passwords are stored exactly as submitted (no hashing).
class Admin(Base):
    __tablename__ = "admins"

    id = Column(String(32), primary_key=True, default=new_id)
    username = Column(String, nullable=False, unique=True, index=True)
    password = Column(String, nullable=False)
