# --- Imports ---
from contextlib import asynccontextmanager
import logging

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, field_validator
from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session # For database session management

# Internal imports from sibling modules
from .database import Base, engine, get_db
from .errors import (
    AlreadyExists,
    DuplicateItem,
    InvalidCredentials,
    NotFound,
    StockServiceError,
    StoreError,
)
from .models import Admin, StockItem, name_key, utcnow
from .security import AdminContext, issue_token, require_admin, using_default_secret

logger = logging.getLogger(__name__)


# --- Lifecycle ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Creates tables before serving and releases the connection pool on shutdown."""
    if using_default_secret():
        logger.warning("JWT_SECRET is not set; using the development fallback secret")
    Base.metadata.create_all(bind=engine)
    yield
    engine.dispose()


# --- App Instance ---
app = FastAPI(lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Error Envelopes ---
@app.exception_handler(StockServiceError)
async def stock_service_error_handler(request: Request, exc: StockServiceError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    details = "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
    )
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": "Invalid request body", "error": details},
    )


# --- Request Models ---
class Credentials(BaseModel):
    """Username/password pair used to log in or bootstrap an admin."""
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)

class ItemCreate(BaseModel):
    """Pydantic model for adding a new stock item."""
    name: str
    quantity: int = Field(ge=0)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value

class QuantityUpdate(BaseModel):
    """Pydantic model for setting an item's quantity."""
    quantity: int = Field(ge=0)


def store_error(db: Session, message: str, exc: SQLAlchemyError) -> StoreError:
    """Rolls back the session and wraps a persistence failure for the client."""
    db.rollback()
    logger.exception(message)
    return StoreError(message, str(exc))


# --- Endpoints ---
@app.get("/")
def root():
    """Health check endpoint to confirm the stock service is operational."""
    return {"message": "Stock service is running"}

@app.get("/api/stock")
def list_items(db: Session = Depends(get_db)):
    """Public listing of every stock item, alphabetical by name."""
    try:
        items = db.query(StockItem).order_by(StockItem.name).all()
    except SQLAlchemyError as e:
        raise store_error(db, "Error fetching stock", e)
    return {"success": True, "items": [item.to_dict() for item in items]}

@app.post("/api/admin/login")
def login(req: Credentials, db: Session = Depends(get_db)):
    """
    Exchanges admin credentials for a bearer token valid for 24 hours.
    - Passwords are compared in plaintext.
    - Unknown usernames and wrong passwords get the same response.
    """
    try:
        admin = db.query(Admin).filter(Admin.username == req.username).first()
    except SQLAlchemyError as e:
        raise store_error(db, "Login error", e)

    if not admin or admin.password != req.password:
        logger.warning("Failed login attempt")
        raise InvalidCredentials()

    token = issue_token(admin.id)
    logger.info("Admin %s logged in", admin.id)
    return {"success": True, "token": token, "message": "Login successful"}

@app.post("/api/admin/create")
def create_admin(req: Credentials, db: Session = Depends(get_db)):
    """
    Bootstraps an admin account. Intended to be called once per deployment.
    NOTE: this route is deliberately unauthenticated; anyone who can reach it
    can create admins.
    """
    try:
        existing = db.query(Admin).filter(Admin.username == req.username).first()
        if existing:
            raise AlreadyExists()

        admin = Admin(username=req.username, password=req.password)
        db.add(admin)
        db.commit()
    except IntegrityError:
        # Lost a race against a concurrent create with the same username.
        db.rollback()
        raise AlreadyExists()
    except SQLAlchemyError as e:
        raise store_error(db, "Error creating admin", e)

    logger.info("Admin account created")
    return {"success": True, "message": "Admin created successfully"}

@app.post("/api/stock")
def add_item(
    item: ItemCreate,
    admin: AdminContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """
    Adds a new stock item.
    - Names are unique regardless of case; duplicates are rejected.
    """
    key = name_key(item.name)
    try:
        existing = db.query(StockItem).filter(StockItem.name_key == key).first()
        if existing:
            raise DuplicateItem()

        now = utcnow()
        db_item = StockItem(
            name=item.name,
            name_key=key,
            quantity=item.quantity,
            created_at=now,
            updated_at=now,
        )
        db.add(db_item)
        db.commit()
        db.refresh(db_item)
    except IntegrityError:
        # The unique index on name_key caught a concurrent insert.
        db.rollback()
        raise DuplicateItem()
    except SQLAlchemyError as e:
        raise store_error(db, "Error adding item", e)

    logger.info("Admin %s added item %s (%s)", admin.admin_id, db_item.id, db_item.name)
    return {"success": True, "message": "Item added successfully", "item": db_item.to_dict()}

@app.put("/api/stock/{item_id}")
def update_item(
    item_id: str,
    req: QuantityUpdate,
    admin: AdminContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Sets an item's quantity and refreshes updatedAt in one UPDATE statement."""
    try:
        result = db.execute(
            update(StockItem)
            .where(StockItem.id == item_id)
            .values(quantity=req.quantity, updated_at=utcnow())
        )
        if result.rowcount == 0:
            db.rollback()
            raise NotFound()
        db.commit()
        db_item = db.get(StockItem, item_id)
    except SQLAlchemyError as e:
        raise store_error(db, "Error updating item", e)

    if db_item is None:
        # Deleted by another request between the UPDATE and the re-read.
        raise NotFound()

    logger.info("Admin %s set item %s quantity to %d", admin.admin_id, item_id, req.quantity)
    return {"success": True, "message": "Item updated successfully", "item": db_item.to_dict()}

@app.delete("/api/stock/{item_id}")
def delete_item(
    item_id: str,
    admin: AdminContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Removes an item; a second delete of the same id is a NotFound."""
    try:
        result = db.execute(delete(StockItem).where(StockItem.id == item_id))
        if result.rowcount == 0:
            db.rollback()
            raise NotFound()
        db.commit()
    except SQLAlchemyError as e:
        raise store_error(db, "Error deleting item", e)

    logger.info("Admin %s deleted item %s", admin.admin_id, item_id)
    return {"success": True, "message": "Item deleted successfully"}
