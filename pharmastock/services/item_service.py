from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from pharmastock.core.exceptions import ConflictError, NotFoundError, PersistenceError, ValidationError
from pharmastock.models.item import Item
from pharmastock.models.stock_level import StockLevel


def _identity_clause(name, form, expiry_date):
    clauses = [Item.name == name, Item.form == form]
    if expiry_date is None:
        clauses.append(Item.expiry_date.is_(None))
    else:
        clauses.append(Item.expiry_date == expiry_date)
    return clauses


def find_item_by_identity(db: Session, name: str, form: str, expiry_date: str | None) -> Item | None:
    return (
        db.execute(select(Item).where(*_identity_clause(name, form, expiry_date)))
        .scalars()
        .first()
    )


def _ensure_unique(db, name, form, expiry_date, *, exclude_id=None):
    existing = find_item_by_identity(db, name, form, expiry_date)
    if existing is not None and existing.id != exclude_id:
        raise ConflictError(
            "Item {} ({}, expiry {}) already exists".format(name, form, expiry_date or "none")
        )


def _commit(db: Session, message: str) -> None:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError(message) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise PersistenceError(message) from exc


def get_item(db: Session, item_id: int) -> Item:
    item = db.get(Item, item_id)
    if item is None:
        raise NotFoundError("Item", item_id)
    return item


def create_item(db: Session, *, name, form, expiry_date=None, description=None) -> Item:
    form = getattr(form, "value", form)
    _ensure_unique(db, name, form, expiry_date)
    item = Item(
        name=name,
        description=description,
        form=form,
        expiry_date=expiry_date,
        is_active=True,
    )
    db.add(item)
    _commit(db, "Unable to create item {}".format(name))
    return item


def update_item(db: Session, item_id: int, *, changes: dict) -> Item:
    item = get_item(db, item_id)
    name = changes.get("name")
    if name is not None:
        name = name.strip()
        if not name:
            raise ValidationError("name must not be blank")
    form = changes.get("form")
    form = getattr(form, "value", form)

    new_name = name or item.name
    new_form = form or item.form
    if changes.get("clear_expiry"):
        new_expiry = None
    else:
        new_expiry = changes.get("expiry_date") or item.expiry_date
    _ensure_unique(db, new_name, new_form, new_expiry, exclude_id=item.id)

    item.name = new_name
    item.form = new_form
    item.expiry_date = new_expiry
    if "description" in changes:
        item.description = changes["description"]
    _commit(db, "Unable to update item {}".format(item_id))
    return item


def list_items(db: Session, *, name=None, form=None, include_inactive=False) -> list[tuple[Item, int]]:
    stmt = (
        select(Item, StockLevel.current_quantity)
        .outerjoin(StockLevel, StockLevel.item_id == Item.id)
        .order_by(Item.name, Item.form, Item.expiry_date)
    )
    if not include_inactive:
        stmt = stmt.where(Item.is_active.is_(True))
    if name:
        stmt = stmt.where(Item.name.ilike("%{}%".format(name.strip())))
    if form is not None:
        stmt = stmt.where(Item.form == getattr(form, "value", form))
    return [(item, quantity or 0) for item, quantity in db.execute(stmt).all()]
