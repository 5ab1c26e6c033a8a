import logging
import math
import re
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from storefront.errors import NotFoundError, ValidationError
from storefront.models import Product, Review

logger = logging.getLogger(__name__)

SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")

SORT_ORDERS = {
    "price-asc": Product.price.asc(),
    "price-desc": Product.price.desc(),
    "name-asc": Product.name.asc(),
    "stock-desc": Product.stock_quantity.desc(),
    "newest": Product.created_at.desc(),
}

MAX_QUERY_LENGTH = 100
MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 50

# Stats thresholds
RESTOCK_BELOW = 70
LOW_STOCK_BELOW = 50
RESTOCK_LIST_SIZE = 10


def validate_slug(slug: str) -> bool:
    return bool(slug) and len(slug) <= 100 and bool(SLUG_PATTERN.match(slug))


def list_products(db: Session, sort: str = None):
    order_by = SORT_ORDERS.get(sort, SORT_ORDERS["newest"])
    return (
        db.query(Product)
        .filter(Product.is_active.is_(True))
        .order_by(order_by, Product.id.asc())
        .all()
    )


def get_product(db: Session, slug: str) -> Product:
    if not validate_slug(slug):
        raise ValidationError("Invalid product slug", field="slug")
    product = (
        db.query(Product)
        .filter(Product.slug == slug, Product.is_active.is_(True))
        .first()
    )
    if product is None:
        raise NotFoundError("Product not found")
    return product


def create_product(db: Session, payload) -> Product:
    if not validate_slug(payload.slug):
        raise ValidationError("Invalid product slug", field="slug")
    if db.query(Product).filter(Product.slug == payload.slug).first():
        raise ValidationError("A product with this slug already exists", field="slug")

    product = Product(
        name=payload.name,
        slug=payload.slug,
        description=payload.description,
        details=payload.details,
        price=payload.price,
        stock_quantity=payload.stock_quantity,
        ingredients=list(payload.ingredients),
        images=list(payload.images),
    )
    try:
        db.add(product)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(product)
    return product


def product_to_dict(product: Product, with_reviews: bool = False) -> dict:
    data = {
        "id": product.id,
        "name": product.name,
        "slug": product.slug,
        "description": product.description,
        "details": product.details,
        "price": f"{product.price:.2f}",
        "images": product.images or [],
        "ingredients": product.ingredients or [],
        "stock_quantity": product.stock_quantity,
        "is_active": product.is_active,
    }
    if with_reviews:
        data["reviews"] = [
            {
                "id": review.id,
                "reviewer_name": review.reviewer_name,
                "rating": review.rating,
                "comment": review.comment,
                "is_verified": review.is_verified,
            }
            for review in product.reviews
        ]
    return data


def _non_negative_float(raw):
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return value


def _int_in_range(raw, low, high=None):
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return None
    if value < low or (high is not None and value > high):
        return None
    return value


def search_params(q=None, min_price=None, max_price=None, sort=None, in_stock=None, limit=None, offset=None) -> dict:
    """
    Sanitize raw search query parameters.

    Values that don't parse or fall out of range are dropped rather than
    rejected, so a bad ``limit`` behaves like no ``limit`` at all.
    """
    params = {}
    if q and q.strip():
        params["query"] = q.strip()[:MAX_QUERY_LENGTH]
    for key, raw in (("minPrice", min_price), ("maxPrice", max_price)):
        price = _non_negative_float(raw)
        if price is not None:
            params[key] = price
    if sort in SORT_ORDERS:
        params["sort"] = sort
    if in_stock in ("true", "false"):
        params["inStock"] = in_stock == "true"
    limit = _int_in_range(limit, 1, MAX_PAGE_SIZE)
    if limit is not None:
        params["limit"] = limit
    offset = _int_in_range(offset, 0)
    if offset is not None:
        params["offset"] = offset
    return params


def search_products(db: Session, params: dict):
    """Return ``(page, total)`` for the active products matching ``params``."""
    query = db.query(Product).filter(Product.is_active.is_(True))

    if "query" in params:
        pattern = f"%{params['query']}%"
        query = query.filter(or_(Product.name.ilike(pattern), Product.description.ilike(pattern)))
    if "minPrice" in params:
        query = query.filter(Product.price >= Decimal(str(params["minPrice"])))
    if "maxPrice" in params:
        query = query.filter(Product.price <= Decimal(str(params["maxPrice"])))
    if params.get("inStock") is True:
        query = query.filter(Product.stock_quantity >= 1)

    total = query.count()
    order_by = SORT_ORDERS.get(params.get("sort"), SORT_ORDERS["newest"])
    query = query.order_by(order_by, Product.id.asc())

    offset = params.get("offset", 0)
    limit = params.get("limit")
    if offset:
        query = query.offset(offset).limit(limit or DEFAULT_PAGE_SIZE)
    elif limit:
        query = query.limit(limit)

    page = query.all()
    logger.info("Product search", extra={"extra": {**params, "results": len(page), "total": total}})
    return page, total


def catalog_stats(db: Session) -> dict:
    active = db.query(Product).filter(Product.is_active.is_(True))

    review_count, rating_sum = db.query(func.count(Review.id), func.sum(Review.rating)).one()
    if review_count:
        average = (Decimal(rating_sum) / review_count).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    else:
        average = Decimal("0.0")

    restock = (
        active.filter(Product.stock_quantity < RESTOCK_BELOW)
        .order_by(Product.stock_quantity.asc(), Product.id.asc())
        .limit(RESTOCK_LIST_SIZE)
        .all()
    )

    return {
        "totalProducts": active.count(),
        "totalStock": int(active.with_entities(func.coalesce(func.sum(Product.stock_quantity), 0)).scalar()),
        "totalReviews": review_count,
        "averageRating": f"{average:.1f}",
        "lowStockProducts": [product_to_dict(p) for p in restock],
        # Counted over the restock list only
        "summary": {
            "inStock": sum(1 for p in restock if p.stock_quantity > 0),
            "outOfStock": sum(1 for p in restock if p.stock_quantity == 0),
            "lowStock": sum(1 for p in restock if 0 < p.stock_quantity < LOW_STOCK_BELOW),
        },
    }
