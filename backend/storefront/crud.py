# storefront/crud.py
import logging
from typing import Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, contains_eager, joinedload, selectinload

from . import models, schemas
from .filters import SortKey, TRUE

logger = logging.getLogger("storefront.crud")

PAGE_SIZE = 12
FEATURED_LIMIT = 8


def page_bounds(page: int) -> Tuple[int, int]:
    """(offset, limit) for a 1-based page number."""
    page = max(int(page), 1)
    return (page - 1) * PAGE_SIZE, PAGE_SIZE


def product_query(
    db: Session,
    category: Optional[str] = None,
    on_sale: Optional[str] = None,
    is_new: Optional[str] = None,
    sort: Optional[str] = None,
):
    q = (
        db.query(models.Product)
        .join(models.Product.category)
        .options(
            contains_eager(models.Product.category),
            selectinload(models.Product.media),
        )
    )
    if category:
        q = q.filter(models.Category.slug == category)
    # only the literal "true" switches a flag filter on
    if on_sale == TRUE:
        q = q.filter(models.Product.on_sale.is_(True))
    if is_new == TRUE:
        q = q.filter(models.Product.is_new.is_(True))

    column_name, descending = SortKey.parse(sort).order_by
    column = getattr(models.Product, column_name)
    if descending:
        return q.order_by(column.desc(), models.Product.id.desc())
    return q.order_by(column.asc(), models.Product.id.asc())


def list_products(
    db: Session,
    page: int = 1,
    category: Optional[str] = None,
    on_sale: Optional[str] = None,
    is_new: Optional[str] = None,
    sort: Optional[str] = None,
):
    """
    One page of the catalog, at most PAGE_SIZE products.

    Query failures are logged and come back as an empty page, same as a
    filter that matches nothing; the log level tells the two apart.
    """
    offset, limit = page_bounds(page)
    try:
        q = product_query(db, category=category, on_sale=on_sale, is_new=is_new, sort=sort)
        items = q.offset(offset).limit(limit).all()
    except SQLAlchemyError:
        logger.error(
            "Error fetching products (page=%s category=%r on_sale=%r is_new=%r sort=%r)",
            page, category, on_sale, is_new, sort,
            exc_info=True,
        )
        return []
    if not items:
        logger.debug(
            "No products on page %s (category=%r on_sale=%r is_new=%r)",
            page, category, on_sale, is_new,
        )
    return items


def get_product_by_slug(db: Session, slug: str):
    try:
        return (
            db.query(models.Product)
            .options(
                joinedload(models.Product.category),
                selectinload(models.Product.media),
            )
            .filter(models.Product.slug == slug)
            .first()
        )
    except SQLAlchemyError:
        logger.error("Error fetching product %r", slug, exc_info=True)
        return None


def list_categories(db: Session):
    try:
        return (
            db.query(models.Category)
            .order_by(
                models.Category.sort_order.is_(None),
                models.Category.sort_order.asc(),
                models.Category.created_at.asc(),
                models.Category.id.asc(),
            )
            .all()
        )
    except SQLAlchemyError:
        logger.error("Error fetching categories", exc_info=True)
        return []


def list_featured_products(db: Session, limit: int = FEATURED_LIMIT):
    try:
        return (
            db.query(models.Product)
            .options(
                joinedload(models.Product.category),
                selectinload(models.Product.media),
            )
            .filter(models.Product.featured.is_(True))
            .order_by(models.Product.created_at.desc(), models.Product.id.desc())
            .limit(limit)
            .all()
        )
    except SQLAlchemyError:
        logger.error("Error fetching trending products", exc_info=True)
        return []


def get_site_settings(db: Session):
    # Raises on failure; settings_provider owns the fallback.
    return db.query(models.SiteSettings).order_by(models.SiteSettings.id.asc()).first()


def create_inquiry(db: Session, payload: schemas.InquiryCreate):
    obj = models.Inquiry(
        name=payload.name,
        contact=payload.contact,
        message=payload.message,
    )
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj
