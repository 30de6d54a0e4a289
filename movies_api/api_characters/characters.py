from flask import Blueprint, current_app, request

from movies_api.api_characters.characters_functions import (
    build_characters_query,
    merge_character_update,
    present_character,
    present_characters,
    validate_character,
)
from movies_api.core.http import (
    cached_detail_response,
    cached_list_response,
    created_response,
    detail_cache_key,
    find_page,
    get_cache,
    get_db,
    get_includes,
    get_json_body,
    list_cache_key,
    load_document,
)
from movies_api.core.validation import utc_now

characters_api = Blueprint("characters", __name__, url_prefix="/api/characters")


@characters_api.route("", methods=["GET"])
def get_characters():
    """
    Handle GET requests for the characters listing.

    Returns:
        Response: Flask response with one page of characters and a ``Link`` header.
    """
    db = get_db()

    def build():
        characters, links = find_page(db["characters"], build_characters_query(request.args), [("name", 1)])
        return present_characters(characters, db, get_includes()), links

    return cached_list_response(list_cache_key("characters"), build)


@characters_api.route("", methods=["POST"])
def create_character():
    db = get_db()
    body = get_json_body()

    character = validate_character(body, db)
    character["createdAt"] = utc_now()

    result = db["characters"].insert_one(character)
    created = db["characters"].find_one({"_id": result.inserted_id})
    get_cache().invalidate()
    current_app.logger.info("Created character %s (%s)", created["name"], created["_id"])
    return created_response(present_character(created, db, get_includes()), "api", "characters", str(created["_id"]))


@characters_api.route("/<character_id>", methods=["GET"])
def get_character(character_id: str):
    db = get_db()

    def build():
        character = load_document(db["characters"], character_id, "character")
        return present_character(character, db, get_includes())

    return cached_detail_response(detail_cache_key("characters", character_id), build)


@characters_api.route("/<character_id>", methods=["PATCH"])
def patch_character(character_id: str):
    db = get_db()
    character = load_document(db["characters"], character_id, "character")
    body = get_json_body()

    updates = validate_character(merge_character_update(character, body), db, character["_id"])
    return save_character(character, updates)


@characters_api.route("/<character_id>", methods=["PUT"])
def put_character(character_id: str):
    db = get_db()
    character = load_document(db["characters"], character_id, "character")
    body = get_json_body()

    replacement = validate_character(body, db, character["_id"])
    return save_character(character, replacement)


def save_character(character: dict, fields: dict):
    db = get_db()
    replacement = dict(fields)
    replacement["createdAt"] = character.get("createdAt")

    db["characters"].replace_one({"_id": character["_id"]}, replacement)
    saved = db["characters"].find_one({"_id": character["_id"]})
    get_cache().invalidate()
    current_app.logger.info("Updated character %s (%s)", saved["name"], saved["_id"])
    return present_character(saved, db, get_includes())


@characters_api.route("/<character_id>", methods=["DELETE"])
def delete_character(character_id: str):
    db = get_db()
    character = load_document(db["characters"], character_id, "character")

    db["characters"].delete_one({"_id": character["_id"]})
    get_cache().invalidate()
    current_app.logger.info("Deleted character %s (%s)", character["name"], character["_id"])
    return "", 204
