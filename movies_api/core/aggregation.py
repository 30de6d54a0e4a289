import logging

from pymongo.collection import Collection

logger = logging.getLogger(__name__)


def build_count_pipeline(foreign_key: str, ids: list):
    """
    Create the aggregation pipeline counting documents per parent identifier.

    Args:
        foreign_key (str): Field holding the parent reference.
        ids (list): Parent identifiers to count for.

    Returns:
        list[dict]: Pipeline definition for MongoDB.
    """
    return [
        {"$match": {foreign_key: {"$in": list(ids)}}},
        {"$group": {"_id": f"${foreign_key}", "count": {"$sum": 1}}},
    ]


def count_related(collection: Collection, foreign_key: str, ids: list):
    """
    Count the documents of a collection referencing each given parent.

    Runs a single grouped query whatever the number of parents. Parents with
    no referencing document are kept with a count of 0.

    Args:
        collection (Collection): Collection holding the child documents.
        foreign_key (str): Field of the child documents referencing the parent.
        ids (list): Parent identifiers, in any order.

    Returns:
        dict: Number of child documents keyed by parent identifier.
    """
    if not ids:
        return {}

    grouped = {}
    for result in collection.aggregate(build_count_pipeline(foreign_key, ids)):
        grouped[result["_id"]] = result["count"]

    counts = {identifier: grouped.get(identifier, 0) for identifier in ids}
    logger.debug("Counted %s for %d parents (%d with matches)", collection.name, len(ids), len(grouped))
    return counts


def attach_counts(documents: list[dict], counts: dict, field: str):
    """
    Copy each document and add its aggregated count under ``field``.

    Args:
        documents (list[dict]): Parent documents.
        counts (dict): Counts keyed by parent identifier.
        field (str): Name of the computed field.

    Returns:
        list[dict]: Documents with the computed field set, 0 when absent.
    """
    enriched = []
    for document in documents:
        payload = dict(document)
        payload[field] = counts.get(document["_id"], 0)
        enriched.append(payload)
    return enriched


def with_related_counts(documents: list[dict], collection: Collection, foreign_key: str, field: str):
    ids = [document["_id"] for document in documents]
    return attach_counts(documents, count_related(collection, foreign_key, ids), field)
