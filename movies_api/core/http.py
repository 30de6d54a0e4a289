from flask import current_app, jsonify, request
from pymongo.collection import Collection
from pymongo.database import Database

from movies_api.core.cache import ResponseCache, build_cache_key
from movies_api.core.errors import NotFound, UnsupportedMediaType
from movies_api.core.integrity import parse_object_id
from movies_api.core.pagination import build_pagination_links, format_link_header, get_pagination_params, page_window
from movies_api.settings import Settings


def get_db() -> Database:
    return current_app.extensions["movies_api"]["db"]


def get_cache() -> ResponseCache:
    return current_app.extensions["movies_api"]["cache"]


def get_settings() -> Settings:
    return current_app.extensions["movies_api"]["settings"]


def get_json_body():
    """
    Return the JSON object submitted with a write request.

    Returns:
        dict: Parsed body, empty when the JSON is not an object.

    Raises:
        UnsupportedMediaType: When the request body is not JSON.
    """
    if not request.is_json:
        raise UnsupportedMediaType(f"Unsupported content type {request.mimetype or 'none'}, expected application/json")
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def get_includes():
    """
    Collect the relations requested through ``include`` query parameters.

    Both ``include=a&include=b`` and ``include=a,b`` are accepted.

    Returns:
        set[str]: Relation names.
    """
    includes = set()
    for raw_value in request.args.getlist("include"):
        for part in raw_value.split(","):
            if part.strip():
                includes.add(part.strip())
    return includes


def load_document(collection: Collection, identifier: str, entity: str):
    """
    Fetch a document by the identifier found in the path.

    Args:
        collection (Collection): Collection to search.
        identifier (str): Raw identifier from the path segment.
        entity (str): Lower-case entity name used in the error message.

    Returns:
        dict: Stored document.

    Raises:
        NotFound: When the identifier is malformed or unknown.
    """
    object_id = parse_object_id(identifier)
    document = collection.find_one({"_id": object_id}) if object_id is not None else None
    if document is None:
        raise NotFound(f"No {entity} found with ID {identifier}")
    return document


def resource_url(*segments: str):
    """
    Build the absolute URL of a resource below the configured base URL.

    Args:
        *segments (str): Path segments, joined with slashes.

    Returns:
        str: Absolute URL.
    """
    path = "/".join(str(segment).strip("/") for segment in segments)
    return f"{get_settings().base_url}/{path}"


def find_page(collection: Collection, query: dict, sort: list[tuple[str, int]]):
    """
    Run a filtered, sorted and paginated query for the current request.

    Args:
        collection (Collection): Collection to query.
        query (dict): MongoDB filter built from the query parameters.
        sort (list[tuple[str, int]]): Sort specification.

    Returns:
        tuple[list[dict], dict[str, str]]: Documents of the requested page and navigation links.
    """
    page, page_size = get_pagination_params(request.args.get("page"), request.args.get("pageSize"))
    total = collection.count_documents(query)

    skip, limit = page_window(page, page_size)
    documents = list(collection.find(query).sort(sort).skip(skip).limit(limit))

    links = build_pagination_links(resource_url(request.path), list(request.args.items(multi=True)), page, page_size, total)
    return documents, links


def list_cache_key(prefix: str):
    return build_cache_key(prefix, "list", request.query_string.decode("utf-8"))


def detail_cache_key(prefix: str, identifier: str):
    return build_cache_key(prefix, "detail", identifier, request.query_string.decode("utf-8"))


def list_response(body: list, links: dict):
    response = jsonify(body)
    link_header = format_link_header(links)
    if link_header:
        response.headers["Link"] = link_header
    return response


def cached_list_response(cache_key: str, builder):
    """
    Serve a collection from the cache, computing and storing it on a miss.

    Args:
        cache_key (str): Cache key for the current query.
        builder (Callable[[], tuple[list, dict]]): Produces the body and the navigation links.

    Returns:
        Response: Flask response with the JSON array and ``Link`` header.
    """
    cache = get_cache()
    cached = cache.get(cache_key)
    if cached is not None:
        current_app.logger.debug("cache hit for %s", cache_key)
        return list_response(cached["body"], cached["links"])

    body, links = builder()
    cache.set(cache_key, {"body": body, "links": links})
    return list_response(body, links)


def cached_detail_response(cache_key: str, builder):
    cache = get_cache()
    cached = cache.get(cache_key)
    if cached is not None:
        current_app.logger.debug("cache hit for %s", cache_key)
        return jsonify(cached)

    body = builder()
    cache.set(cache_key, body)
    return jsonify(body)


def created_response(body: dict, *segments: str):
    response = jsonify(body)
    response.status_code = 201
    response.headers["Location"] = resource_url(*segments)
    return response
