from bson import ObjectId
from pymongo.collection import Collection

from movies_api.core.errors import build_field_error
from movies_api.core.integrity import parse_object_id, resolve_reference
from movies_api.core.representation import serialize_character
from movies_api.core.validation import check_enum, check_number, check_string, check_unique, raise_for_errors

GENDERS = ("male", "female")
CHARACTER_FIELDS = ("name", "gender", "age", "movie")


def build_characters_query(args: dict):
    query = {}

    movie_id = parse_object_id(args.get("movie"))
    if movie_id is not None:
        query["movie"] = movie_id

    gender = (args.get("gender") or "").strip().lower()
    if gender in GENDERS:
        query["gender"] = gender

    return query


def validate_character(data: dict, db: object, current_id: ObjectId | None = None):
    """
    Validate the writable fields of a character, movie reference included.

    Args:
        data (dict): Complete set of submitted values.
        db (Database): Database holding the characters and movies collections.
        current_id (ObjectId | None): Identifier of the character being updated.

    Returns:
        dict: Fields ready to be stored.

    Raises:
        ValidationFailed: When any field is invalid or the movie does not exist.
    """
    errors = {}
    name = check_string(data, "name", errors, required=True, minlength=3, maxlength=30)
    gender = check_enum(data, "gender", GENDERS, errors, required=True)
    age = check_number(data, "age", errors, minimum=0, integer=True)
    check_unique(db["characters"], "name", name, errors, "Character", current_id)

    movie = None
    raw_movie = data.get("movie")
    if raw_movie is None or raw_movie == "":
        errors["movie"] = build_field_error("movie", "required", "Path `movie` is required.")
    else:
        movie, error = resolve_reference(db["movies"], raw_movie, "movie", "Movie")
        if error:
            errors["movie"] = error

    raise_for_errors("Character", errors)

    character = {"name": name, "gender": gender, "movie": movie}
    if age is not None:
        character["age"] = age
    return character


def merge_character_update(character: dict, data: dict):
    merged = {field: character.get(field) for field in CHARACTER_FIELDS}
    for field in CHARACTER_FIELDS:
        if field in data:
            merged[field] = data[field]
    return merged


def load_movies(movies_collection: Collection, characters: list[dict]):
    movie_ids = list({character["movie"] for character in characters if character.get("movie") is not None})
    if not movie_ids:
        return {}
    return {movie["_id"]: movie for movie in movies_collection.find({"_id": {"$in": movie_ids}})}


def present_characters(characters: list[dict], db: object, includes: set[str]):
    movies = load_movies(db["movies"], characters) if "movie" in includes else {}
    return [serialize_character(character, movies.get(character.get("movie"))) for character in characters]


def present_character(character: dict, db: object, includes: set[str]):
    return present_characters([character], db, includes)[0]
