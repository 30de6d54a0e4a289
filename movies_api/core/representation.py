from datetime import datetime, timezone

from bson import ObjectId

STORAGE_FIELDS = ("_id", "__v")


def format_timestamp(value: datetime | None):
    """
    Format a stored timestamp as an ISO 8601 UTC string.

    Args:
        value (datetime | None): Timestamp read from the store.

    Returns:
        str | None: Timestamp with millisecond precision suffixed with ``Z``.
    """
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.isoformat(timespec="milliseconds") + "Z"


def format_date(value: datetime | None):
    if value is None:
        return None
    return value.date().isoformat()


def format_reference(value: object):
    if isinstance(value, ObjectId):
        return str(value)
    return value


def serialize_document(document: dict, timestamps: tuple = ("createdAt",), dates: tuple = (), references: tuple = ()):
    """
    Convert a stored document into its public JSON shape.

    Args:
        document (dict): Document from the collection.
        timestamps (tuple): Fields formatted as full UTC timestamps.
        dates (tuple): Fields formatted as date-only strings.
        references (tuple): Fields holding identifiers of other documents.

    Returns:
        dict: Copy with a string ``id`` and no storage-internal field.
    """
    serialized = {"id": str(document["_id"])}
    for key, value in document.items():
        if key in STORAGE_FIELDS:
            continue
        if key in timestamps:
            serialized[key] = format_timestamp(value)
        elif key in dates:
            serialized[key] = format_date(value)
        elif key in references:
            serialized[key] = format_reference(value)
        else:
            serialized[key] = value
    return serialized


def inline_relation(serialized: dict, foreign_key: str, relation: str, related: dict | None):
    """
    Replace a raw reference with the expanded document it points to.

    Args:
        serialized (dict): Already serialized document.
        foreign_key (str): Field holding the raw reference.
        relation (str): Field name for the expanded document.
        related (dict | None): Serialized related document, None when not expanded.

    Returns:
        dict: Document with either the raw reference or the inlined relation.
    """
    if related is None:
        return serialized
    payload = {key: value for key, value in serialized.items() if key != foreign_key}
    payload[relation] = related
    return payload


def serialize_person(document: dict):
    serialized = serialize_document(document, dates=("birthDate",))
    serialized.setdefault("birthDate", None)
    return serialized


def serialize_review(review: dict):
    serialized = dict(review)
    if "postedAt" in serialized:
        serialized["postedAt"] = format_timestamp(serialized["postedAt"])
    return serialized


def serialize_movie(document: dict, director: dict | None = None):
    """
    Convert a stored movie into its public JSON shape.

    Args:
        document (dict): Movie document, possibly enriched with a ``characters`` count.
        director (dict | None): Stored director document when ``include=director`` was requested.

    Returns:
        dict: Serialized movie.
    """
    serialized = serialize_document(document, references=("director",))
    if "reviews" in serialized:
        serialized["reviews"] = [serialize_review(review) for review in serialized["reviews"]]
    expanded = serialize_person(director) if director is not None else None
    return inline_relation(serialized, "director", "director", expanded)


def serialize_character(document: dict, movie: dict | None = None):
    serialized = serialize_document(document, references=("movie",))
    expanded = serialize_movie(movie) if movie is not None else None
    return inline_relation(serialized, "movie", "movie", expanded)
