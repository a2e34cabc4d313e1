"""
Product query builder for GET /all-product.

`build_product_query` turns the raw (string) query params into a MongoDB
filter, a sort spec and a page window. It does no I/O. `run_product_query`
executes it against the products collection and derives the category/brand
facets from the returned page only.
"""
import re
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from database import docs_to_list

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 12

# BSON integers are 8 bytes
MAX_INT64 = 2 ** 63 - 1

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


class ProductQueryParams(BaseModel):
    email: Optional[str] = None
    search: Optional[str] = None
    type: Optional[str] = None
    category: Optional[str] = None
    brand: Optional[str] = None
    sort: Optional[str] = None
    page: Optional[str] = None
    size: Optional[str] = None


class ProductQuery(BaseModel):
    filter: Dict[str, Any] = Field(default_factory=dict)
    sort: List[Tuple[str, int]]
    skip: int
    page: int
    size: int


class ProductPage(BaseModel):
    count: int
    page: int
    size: int
    products: List[dict]
    categories: List[Optional[str]]
    brands: List[Optional[str]]


def present(value: Optional[str]) -> Optional[str]:
    # empty string counts as absent
    if value is None or value == "":
        return None
    return value


def parse_positive_int(value: Optional[str], default: int) -> int:
    if value is None:
        return default
    match = _LEADING_INT.match(value)
    if not match:
        return default
    number = int(match.group(1))
    return number if 1 <= number <= MAX_INT64 else default


def sort_for(mode: Optional[str]) -> List[Tuple[str, int]]:
    if mode == "asc":
        return [("sellingPrice", 1)]
    if mode == "desc":
        return [("sellingPrice", -1)]
    return [("createdAt", -1)]


def build_product_query(params: ProductQueryParams) -> ProductQuery:
    query: Dict[str, Any] = {}

    seller_email = present(params.email)
    if seller_email is not None:
        query["sellerEmail"] = seller_email

    search = present(params.search)
    if search is not None:
        pattern = re.escape(search)
        query["$or"] = [
            {"title": {"$regex": pattern, "$options": "i"}},
            {"category": {"$regex": pattern, "$options": "i"}},
            {"type": {"$regex": pattern, "$options": "i"}},
        ]

    for field in ("type", "category", "brand"):
        value = present(getattr(params, field))
        if value is not None:
            query[field] = value

    page = parse_positive_int(params.page, DEFAULT_PAGE)
    size = parse_positive_int(params.size, DEFAULT_PAGE_SIZE)
    if (page - 1) * size > MAX_INT64:
        page = DEFAULT_PAGE

    return ProductQuery(
        filter=query,
        sort=sort_for(params.sort),
        skip=(page - 1) * size,
        page=page,
        size=size,
    )


def distinct_in_order(docs: List[dict], field: str) -> List[Optional[str]]:
    seen = []
    for doc in docs:
        value = doc.get(field)
        if value not in seen:
            seen.append(value)
    return seen


def run_product_query(collection, query: ProductQuery) -> ProductPage:
    count = collection.count_documents(query.filter)
    cursor = collection.find(query.filter).sort(query.sort).skip(query.skip).limit(query.size)
    products = docs_to_list(cursor)

    return ProductPage(
        count=count,
        page=query.page,
        size=query.size,
        products=products,
        categories=distinct_in_order(products, "category"),
        brands=distinct_in_order(products, "brand"),
    )
