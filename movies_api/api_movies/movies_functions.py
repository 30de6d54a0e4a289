import math
from datetime import datetime

from bson import ObjectId
from pymongo.collection import Collection

from movies_api.core.aggregation import with_related_counts
from movies_api.core.errors import build_field_error
from movies_api.core.integrity import parse_object_id, resolve_reference
from movies_api.core.representation import serialize_movie
from movies_api.core.validation import check_number, check_string, check_unique, raise_for_errors, utc_now

MOVIE_FIELDS = ("title", "rating", "director", "reviews")


def safe_float(value, default=None):
    """
    Convert arbitrary values into floats while guarding against failures.

    Args:
        value (Any): Raw value to convert.
        default (float | None): Fallback value when parsing is unsuccessful.

    Returns:
        float | None: Parsed finite float or the provided default.
    """
    if value is None:
        return default
    try:
        number = float(str(value).replace(",", "."))
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


def build_movies_query(args: dict):
    """
    Build the MongoDB filter for a movies listing.

    Supported filters are ``director``, ``rating``, ``ratedAtLeast`` and
    ``ratedAtMost``. Values that cannot be parsed are ignored.

    Args:
        args (dict): Query parameters of the request.

    Returns:
        dict: Filter for ``find`` and ``count_documents``.
    """
    query = {}

    director_id = parse_object_id(args.get("director"))
    if director_id is not None:
        query["director"] = director_id

    rating = safe_float(args.get("rating"))
    if rating is not None:
        query["rating"] = rating

    rating_range = {}
    rated_at_least = safe_float(args.get("ratedAtLeast"))
    if rated_at_least is not None:
        rating_range["$gte"] = rated_at_least
    rated_at_most = safe_float(args.get("ratedAtMost"))
    if rated_at_most is not None:
        rating_range["$lte"] = rated_at_most
    if rating_range and "rating" not in query:
        query["rating"] = rating_range

    return query


def validate_reviews(data: dict, errors: dict):
    """
    Validate the embedded reviews of a movie.

    Args:
        data (dict): Submitted movie.
        errors (dict): Error entries collected so far, updated in place.

    Returns:
        list[dict]: Reviews ready to be stored.
    """
    raw_reviews = data.get("reviews")
    if raw_reviews is None:
        return []
    if not isinstance(raw_reviews, list):
        errors["reviews"] = build_field_error("reviews", "Array", "Path `reviews` must be an array.", raw_reviews)
        return []

    reviews = []
    for index, raw_review in enumerate(raw_reviews):
        prefix = f"reviews.{index}"
        if not isinstance(raw_review, dict):
            errors[prefix] = build_field_error(prefix, "Object", f"Path `{prefix}` must be an object.", raw_review)
            continue

        review_errors = {}
        author = check_string(raw_review, "author", review_errors, minlength=3, maxlength=30)
        comment = check_string(raw_review, "comment", review_errors, required=True, minlength=3, maxlength=10000)
        for field, entry in review_errors.items():
            path = f"{prefix}.{field}"
            errors[path] = dict(entry, path=path)
        if review_errors:
            continue

        posted_at = raw_review.get("postedAt")
        review = {"comment": comment, "postedAt": posted_at if isinstance(posted_at, datetime) else utc_now()}
        if author is not None:
            review["author"] = author
        reviews.append(review)

    return reviews


def validate_movie(data: dict, db: object, current_id: ObjectId | None = None):
    """
    Validate the writable fields of a movie, director reference included.

    Args:
        data (dict): Complete set of submitted values.
        db (Database): Database holding the movies and people collections.
        current_id (ObjectId | None): Identifier of the movie being updated.

    Returns:
        dict: Fields ready to be stored.

    Raises:
        ValidationFailed: When any field is invalid or the director does not exist.
    """
    errors = {}
    title = check_string(data, "title", errors, required=True, minlength=3, maxlength=50)
    rating = check_number(data, "rating", errors, minimum=0, maximum=10)
    reviews = validate_reviews(data, errors)
    check_unique(db["movies"], "title", title, errors, "Movie", current_id)

    director = None
    raw_director = data.get("director")
    if raw_director is None or raw_director == "":
        errors["director"] = build_field_error("director", "required", "Path `director` is required.")
    else:
        director, error = resolve_reference(db["people"], raw_director, "director", "Person")
        if error:
            errors["director"] = error

    raise_for_errors("Movie", errors)

    movie = {"title": title, "director": director, "reviews": reviews}
    if rating is not None:
        movie["rating"] = rating
    return movie


def merge_movie_update(movie: dict, data: dict):
    merged = {field: movie.get(field) for field in MOVIE_FIELDS}
    for field in MOVIE_FIELDS:
        if field in data:
            merged[field] = data[field]
    return merged


def load_directors(people_collection: Collection, movies: list[dict]):
    """
    Fetch the directors of a page of movies with a single query.

    Args:
        people_collection (Collection): People collection.
        movies (list[dict]): Stored movies.

    Returns:
        dict: Stored people keyed by identifier.
    """
    director_ids = list({movie["director"] for movie in movies if movie.get("director") is not None})
    if not director_ids:
        return {}
    return {person["_id"]: person for person in people_collection.find({"_id": {"$in": director_ids}})}


def present_movies(movies: list[dict], db: object, includes: set[str]):
    """
    Serialize movies with their character counts and optional directors.

    Args:
        movies (list[dict]): Stored movies.
        db (Database): Database holding the related collections.
        includes (set[str]): Relations to expand.

    Returns:
        list[dict]: Serialized movies.
    """
    enriched = with_related_counts(movies, db["characters"], "movie", "characters")
    directors = load_directors(db["people"], movies) if "director" in includes else {}
    return [serialize_movie(movie, directors.get(movie.get("director"))) for movie in enriched]


def present_movie(movie: dict, db: object, includes: set[str]):
    return present_movies([movie], db, includes)[0]
