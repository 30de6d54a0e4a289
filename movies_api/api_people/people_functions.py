import re

from bson import ObjectId
from pymongo.collection import Collection

from movies_api.core.aggregation import with_related_counts
from movies_api.core.representation import serialize_person
from movies_api.core.validation import check_date, check_enum, check_string, check_unique, raise_for_errors

GENDERS = ("male", "female", "other")
PERSON_FIELDS = ("name", "gender", "birthDate")


def build_people_query(args: dict):
    """
    Build the MongoDB filter for a people listing.

    Unknown or invalid filter values are ignored.

    Args:
        args (dict): Query parameters of the request.

    Returns:
        dict: Filter for ``find`` and ``count_documents``.
    """
    query = {}

    gender = (args.get("gender") or "").strip().lower()
    if gender in GENDERS:
        query["gender"] = gender

    search = (args.get("q") or "").strip()
    if search:
        query["name"] = {"$regex": re.escape(search), "$options": "i"}

    return query


def validate_person(data: dict, people_collection: Collection, current_id: ObjectId | None = None):
    """
    Validate the writable fields of a person.

    Args:
        data (dict): Complete set of submitted values.
        people_collection (Collection): People collection, used for the name uniqueness check.
        current_id (ObjectId | None): Identifier of the person being updated.

    Returns:
        dict: Fields ready to be stored.

    Raises:
        ValidationFailed: When any field is invalid.
    """
    errors = {}
    name = check_string(data, "name", errors, required=True, minlength=3, maxlength=30)
    gender = check_enum(data, "gender", GENDERS, errors, required=True)
    birth_date = check_date(data, "birthDate", errors)
    check_unique(people_collection, "name", name, errors, "Person", current_id)
    raise_for_errors("Person", errors)

    person = {"name": name, "gender": gender}
    if birth_date is not None:
        person["birthDate"] = birth_date
    return person


def merge_person_update(person: dict, data: dict):
    """
    Apply a partial update on top of the stored values.

    Args:
        person (dict): Stored person.
        data (dict): Submitted fields, absent ones are left unchanged.

    Returns:
        dict: Values to validate.
    """
    merged = {field: person.get(field) for field in PERSON_FIELDS}
    for field in PERSON_FIELDS:
        if field in data:
            merged[field] = data[field]
    return merged


def present_people(people: list[dict], movies_collection: Collection):
    """
    Serialize people with the number of movies each one directs.

    Args:
        people (list[dict]): Stored people.
        movies_collection (Collection): Movies collection.

    Returns:
        list[dict]: Serialized people including ``directedMovies``.
    """
    enriched = with_related_counts(people, movies_collection, "director", "directedMovies")
    return [serialize_person(person) for person in enriched]


def present_person(person: dict, movies_collection: Collection):
    return present_people([person], movies_collection)[0]
