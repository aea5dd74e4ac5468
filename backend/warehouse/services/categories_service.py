# Overview: Service-layer operations for categories and their subcategories.

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Category, Subcategory
from ..validation import ConflictError, NotFoundError, ValidationError


def _clean_subcategories(raw) -> list[dict]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValidationError("subcategories must be a list")
    cleaned = []
    for item in raw:
        if isinstance(item, str):
            item = {"name": item}
        if not isinstance(item, dict):
            raise ValidationError("Each subcategory must be an object with a name")
        name = str(item.get("name") or "").strip()
        if not name:
            raise ValidationError("Subcategory name is required")
        description = item.get("description")
        cleaned.append({"name": name, "description": description.strip() if isinstance(description, str) else None})
    return cleaned


def _ensure_unique_name(name: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Category).filter(Category.name == name)
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    if query.first() is not None:
        raise ConflictError(f"Category '{name}' already exists")


def list_categories() -> list[Category]:
    return db.session.query(Category).order_by(Category.name.asc()).all()


def get_category_by_id(category_id: int) -> Category | None:
    return db.session.get(Category, category_id)


def create_category(name: str, description: str | None = None, subcategories=None) -> Category:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Category name is required")
    _ensure_unique_name(name)

    category = Category(name=name, description=description)
    for sub in _clean_subcategories(subcategories):
        category.subcategories.append(Subcategory(**sub))

    db.session.add(category)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(f"Category '{name}' already exists")
    return category


def update_category(category_id: int, name: str | None = None, description: str | None = None,
                    subcategories=None) -> Category:
    """
    Update a category.

    When `subcategories` is given the existing rows are deleted and the new
    list inserted with fresh ids; subcategory ids do not survive an edit.
    """
    category = get_category_by_id(category_id)
    if category is None:
        raise NotFoundError("Category not found")

    if name is not None:
        name = name.strip()
        if not name:
            raise ValidationError("Category name is required")
        _ensure_unique_name(name, exclude_id=category_id)
        category.name = name
    if description is not None:
        category.description = description

    if subcategories is not None:
        replacement = _clean_subcategories(subcategories)
        category.subcategories.clear()
        db.session.flush()
        for sub in replacement:
            category.subcategories.append(Subcategory(**sub))

    db.session.commit()
    return category


def delete_category(category_id: int) -> bool:
    category = get_category_by_id(category_id)
    if category is None:
        return False
    db.session.delete(category)
    db.session.commit()
    return True
