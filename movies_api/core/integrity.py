import logging

from bson import ObjectId
from bson.errors import InvalidId
from pymongo.collection import Collection

from movies_api.core.errors import Conflict, build_field_error

logger = logging.getLogger(__name__)


def parse_object_id(value: object):
    """
    Parse a value into an ObjectId.

    Args:
        value (Any): Identifier supplied by the client.

    Returns:
        ObjectId | None: Parsed identifier, or None when the value is malformed.
    """
    if isinstance(value, ObjectId):
        return value
    if not isinstance(value, str):
        return None
    try:
        return ObjectId(value.strip())
    except (InvalidId, TypeError):
        return None


def resolve_reference(collection: Collection, value: object, path: str, entity: str):
    """
    Check that a reference field points to an existing document.

    The lookup is a single ``find_one`` by primary key, done before anything is
    written so a rejected write leaves the store untouched.

    Args:
        collection (Collection): Collection the reference points into.
        value (Any): Submitted reference value.
        path (str): Field name, used in the error entry.
        entity (str): Name of the referenced entity (``Person``, ``Movie``).

    Returns:
        tuple[ObjectId | None, dict | None]: Parsed identifier and field error.
        Exactly one of the two is None.
    """
    object_id = parse_object_id(value)
    if object_id is None:
        message = f"{value} is not a valid {entity.lower()} reference"
        return None, build_field_error(path, "ObjectId", message, value)

    if collection.find_one({"_id": object_id}, projection={"_id": 1}) is None:
        message = f"{value} does not reference an existing {entity}"
        return None, build_field_error(path, "exists", message, value)

    return object_id, None


def ensure_not_referenced(collection: Collection, foreign_key: str, identifier: ObjectId, message: str):
    """
    Refuse to go on while any document still references ``identifier``.

    Args:
        collection (Collection): Collection holding the referencing documents.
        foreign_key (str): Referencing field.
        identifier (ObjectId): Identifier of the document about to be deleted.
        message (str): Conflict message naming the blocked document.

    Raises:
        Conflict: When at least one referencing document exists.
    """
    if collection.find_one({foreign_key: identifier}, projection={"_id": 1}) is not None:
        logger.info("Delete blocked: %s still referenced through %s.%s", identifier, collection.name, foreign_key)
        raise Conflict(message)
