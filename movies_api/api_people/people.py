from flask import Blueprint, current_app, request

from movies_api.api_people.people_functions import build_people_query, merge_person_update, present_people, present_person, validate_person
from movies_api.core.http import (
    cached_detail_response,
    cached_list_response,
    created_response,
    detail_cache_key,
    find_page,
    get_cache,
    get_db,
    get_json_body,
    list_cache_key,
    load_document,
)
from movies_api.core.integrity import ensure_not_referenced
from movies_api.core.validation import utc_now

people_api = Blueprint("people", __name__, url_prefix="/api/people")


@people_api.route("", methods=["GET"])
def get_people():
    """
    Handle GET requests for the people listing.

    Returns:
        Response: Flask response with one page of people and a ``Link`` header.
    """
    db = get_db()

    def build():
        people, links = find_page(db["people"], build_people_query(request.args), [("name", 1)])
        return present_people(people, db["movies"]), links

    return cached_list_response(list_cache_key("people"), build)


@people_api.route("", methods=["POST"])
def create_person():
    """
    Handle POST requests that create a person.

    Returns:
        Response: Created person with status 201 and a ``Location`` header.
    """
    db = get_db()
    body = get_json_body()

    person = validate_person(body, db["people"])
    person["createdAt"] = utc_now()

    result = db["people"].insert_one(person)
    created = db["people"].find_one({"_id": result.inserted_id})
    get_cache().invalidate()
    current_app.logger.info("Created person %s (%s)", created["name"], created["_id"])
    return created_response(present_person(created, db["movies"]), "api", "people", str(created["_id"]))


@people_api.route("/<person_id>", methods=["GET"])
def get_person(person_id: str):
    db = get_db()

    def build():
        person = load_document(db["people"], person_id, "person")
        return present_person(person, db["movies"])

    return cached_detail_response(detail_cache_key("people", person_id), build)


@people_api.route("/<person_id>", methods=["PATCH"])
def patch_person(person_id: str):
    """
    Handle PATCH requests, only the submitted fields are changed.

    Args:
        person_id (str): Identifier from the path segment.

    Returns:
        Response: Updated person.
    """
    db = get_db()
    person = load_document(db["people"], person_id, "person")
    body = get_json_body()

    updates = validate_person(merge_person_update(person, body), db["people"], person["_id"])
    return save_person(person, updates)


@people_api.route("/<person_id>", methods=["PUT"])
def put_person(person_id: str):
    """
    Handle PUT requests, the person is fully replaced by the submitted fields.

    Args:
        person_id (str): Identifier from the path segment.

    Returns:
        Response: Updated person.
    """
    db = get_db()
    person = load_document(db["people"], person_id, "person")
    body = get_json_body()

    replacement = validate_person(body, db["people"], person["_id"])
    return save_person(person, replacement)


def save_person(person: dict, fields: dict):
    db = get_db()
    replacement = dict(fields)
    replacement["createdAt"] = person.get("createdAt")

    db["people"].replace_one({"_id": person["_id"]}, replacement)
    saved = db["people"].find_one({"_id": person["_id"]})
    get_cache().invalidate()
    current_app.logger.info("Updated person %s (%s)", saved["name"], saved["_id"])
    return present_person(saved, db["movies"])


@people_api.route("/<person_id>", methods=["DELETE"])
def delete_person(person_id: str):
    """
    Handle DELETE requests, refused while the person directs any movie.

    Args:
        person_id (str): Identifier from the path segment.

    Returns:
        tuple: Empty body with status 204.
    """
    db = get_db()
    person = load_document(db["people"], person_id, "person")

    message = f"Cannot delete person {person['name']} ({person['_id']}) because movies still reference this person as director"
    ensure_not_referenced(db["movies"], "director", person["_id"], message)

    db["people"].delete_one({"_id": person["_id"]})
    get_cache().invalidate()
    current_app.logger.info("Deleted person %s (%s)", person["name"], person["_id"])
    return "", 204
