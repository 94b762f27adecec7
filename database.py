"""
Database helpers

Thin wrappers over pymongo shared by both apps. References between documents
are stored as string ids and resolved in the handlers.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import HTTPException
from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient, ReturnDocument

import config

logger = logging.getLogger(__name__)

client = MongoClient(config.DATABASE_URL)

# collection -> fields carrying a unique index
UNIQUE_FIELDS = {
    config.CARPARTS_DATABASE_NAME: {
        "user": ["username", "email"],
        "category": ["name"],
        "part": ["part_number"],
        "order": ["order_number"],
    },
    config.RESTAURANT_DATABASE_NAME: {
        "user": ["email"],
        "menu_item": ["name"],
        "table": ["table_number"],
        "order": ["order_number"],
    },
}


def get_database(name: str):
    return client[name]


def utcnow() -> datetime:
    # naive UTC, Mongo stores millisecond precision
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def to_obj_id(id_str: str) -> ObjectId:
    try:
        return ObjectId(id_str)
    except (InvalidId, TypeError):
        raise HTTPException(status_code=400, detail="Invalid ObjectId")


def serialize(doc: Any):
    """Make a document JSON friendly: ObjectIds become strings, secrets are dropped."""
    if isinstance(doc, ObjectId):
        return str(doc)
    if isinstance(doc, list):
        return [serialize(d) for d in doc]
    if isinstance(doc, dict):
        return {k: serialize(v) for k, v in doc.items() if k != "password"}
    return doc


def create_document(db, collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> str:
    if isinstance(data, BaseModel):
        data_dict = data.model_dump(mode="json")
    else:
        data_dict = dict(data)
    now = utcnow()
    data_dict["created_at"] = now
    data_dict["updated_at"] = now
    result = db[collection_name].insert_one(data_dict)
    return str(result.inserted_id)


def get_documents(
    db,
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    sort: Optional[List] = None,
    limit: Optional[int] = None,
) -> List[Dict[str, Any]]:
    cursor = db[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(sort)
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def get_document(db, collection_name: str, doc_id: str) -> Optional[Dict[str, Any]]:
    return db[collection_name].find_one({"_id": to_obj_id(doc_id)})


def update_document(db, collection_name: str, doc_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    changes = dict(changes)
    changes["updated_at"] = utcnow()
    return db[collection_name].find_one_and_update(
        {"_id": to_obj_id(doc_id)},
        {"$set": changes},
        return_document=ReturnDocument.AFTER,
    )


def delete_document(db, collection_name: str, doc_id: str) -> bool:
    result = db[collection_name].delete_one({"_id": to_obj_id(doc_id)})
    return result.deleted_count == 1


def ensure_indexes(db):
    for collection_name, fields in UNIQUE_FIELDS.get(db.name, {}).items():
        for field in fields:
            db[collection_name].create_index([(field, ASCENDING)], unique=True)
    logger.info("Indexes ensured on %s", db.name)
