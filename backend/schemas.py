"""
Database Schemas for the Gadget Galaxy catalog
Each Pydantic model describes a document in one of the MongoDB collections:
- users, products, carts, wishlist, category

Request bodies use the same models. Domain fields the API does not interpret
are allowed through as extra fields and stored as sent.
"""
from datetime import datetime, timezone
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.networks import validate_email


def now() -> datetime:
    # naive UTC, as pymongo returns it
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _check_email(value: str) -> str:
    # validated, but stored exactly as sent so lookups by the same string match
    validate_email(value)
    return value


Email = Annotated[str, AfterValidator(_check_email)]


# Users
class UserCreate(BaseModel):
    name: Optional[str] = None
    email: Email
    role: Optional[str] = Field(default=None, description="e.g. buyer | seller | admin")
    status: Optional[str] = None
    createdBy: Optional[str] = None


class RoleUpdate(BaseModel):
    role: str


class StatusUpdate(BaseModel):
    status: str


# Products
class ProductCreate(BaseModel):
    model_config = ConfigDict(extra="allow")

    title: str
    category: Optional[str] = None
    type: Optional[str] = None
    brand: Optional[str] = None
    sellingPrice: Optional[float] = Field(default=None, ge=0)
    images: List[str] = Field(default_factory=list)
    sellerEmail: Optional[Email] = None


class ProductUpdate(BaseModel):
    """Partial update: only the fields present in the body are written."""
    model_config = ConfigDict(extra="allow")

    title: Optional[str] = None
    category: Optional[str] = None
    type: Optional[str] = None
    brand: Optional[str] = None
    sellingPrice: Optional[float] = Field(default=None, ge=0)
    images: Optional[List[str]] = None


# Cart items
class CartCreate(BaseModel):
    model_config = ConfigDict(extra="allow")

    productId: str
    email: Email
    quantity: int = Field(default=1, ge=1)


class CartQuantityUpdate(BaseModel):
    quantity: int = Field(ge=1)


# Wishlist
class WishlistCreate(BaseModel):
    model_config = ConfigDict(extra="allow")

    email: Email
    productId: Optional[str] = None
