"""
Persistence gateway

A single `Database` value owns the MongoDB client and exposes the five
collections the API works with. It is created once at startup and handed to
every handler; nothing in the app reaches for a global connection.

Also holds the helpers that turn pymongo documents and write results into
JSON-ready dicts.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import HTTPException
from pymongo import MongoClient
from pymongo.results import DeleteResult, InsertOneResult, UpdateResult
from pymongo.server_api import ServerApi

from config import Settings

logger = logging.getLogger(__name__)

NEWEST_FIRST = [("createdAt", -1)]


class Database:
    def __init__(self, client: MongoClient, name: str = "gadget_galaxy", owns_client: bool = False):
        self.client = client
        self.db = client[name]
        self.owns_client = owns_client

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        client = MongoClient(settings.database_url, server_api=ServerApi("1", strict=True, deprecation_errors=True))
        return cls(client, settings.database_name, owns_client=True)

    @property
    def name(self) -> str:
        return self.db.name

    @property
    def users(self):
        return self.db["users"]

    @property
    def products(self):
        return self.db["products"]

    @property
    def carts(self):
        return self.db["carts"]

    @property
    def wishlist(self):
        return self.db["wishlist"]

    @property
    def category(self):
        return self.db["category"]

    def ping(self) -> bool:
        try:
            self.client.admin.command("ping")
        except Exception as e:
            logger.warning("MongoDB ping failed: %s", e)
            return False
        logger.info("Pinged deployment, connected to MongoDB database %r", self.name)
        return True

    def close(self) -> None:
        if self.owns_client:
            self.client.close()


# ---------- Helpers ----------

def oid(id_str: str) -> ObjectId:
    try:
        return ObjectId(id_str)
    except (InvalidId, TypeError):
        raise HTTPException(status_code=400, detail="Invalid id")


def serialize(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: serialize(v) for k, v in value.items()}
    if isinstance(value, list):
        return [serialize(v) for v in value]
    return value


def doc_to_dict(doc: Optional[dict]) -> Optional[dict]:
    if doc is None:
        return None
    return serialize(doc)


def docs_to_list(cursor) -> List[dict]:
    return [doc_to_dict(d) for d in cursor]


def insert_ack(result: InsertOneResult) -> Dict[str, Any]:
    return {"acknowledged": result.acknowledged, "insertedId": str(result.inserted_id)}


def update_ack(result: UpdateResult) -> Dict[str, Any]:
    upserted = result.upserted_id
    return {
        "acknowledged": result.acknowledged,
        "matchedCount": result.matched_count,
        "modifiedCount": result.modified_count,
        "upsertedCount": 1 if upserted is not None else 0,
        "upsertedId": str(upserted) if upserted is not None else None,
    }


def delete_ack(result: DeleteResult) -> Dict[str, Any]:
    return {"acknowledged": result.acknowledged, "deletedCount": result.deleted_count}
