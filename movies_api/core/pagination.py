import math
from urllib.parse import urlencode

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 100
MAX_PAGE_SIZE = 100
# Largest page whose skip still fits in a signed 64-bit integer.
MAX_PAGE = (2 ** 63 - 1) // MAX_PAGE_SIZE + 1
PAGE_PARAM = "page"
PAGE_SIZE_PARAM = "pageSize"


def parse_positive_int(raw_value: object):
    """
    Parse a query parameter into a strictly positive integer.

    Args:
        raw_value (Any): Value provided by the client.

    Returns:
        int | None: Parsed integer, or None when missing, malformed or below 1.
    """
    if raw_value is None or isinstance(raw_value, bool):
        return None
    try:
        value = int(str(raw_value).strip())
    except (TypeError, ValueError):
        return None
    return value if value >= 1 else None


def get_pagination_params(raw_page: object, raw_page_size: object):
    """
    Resolve the page number and page size requested by the client.

    Args:
        raw_page (Any): Raw ``page`` query parameter.
        raw_page_size (Any): Raw ``pageSize`` query parameter.

    Returns:
        tuple[int, int]: Page number (1 to MAX_PAGE) and page size (1 to 100).
    """
    page = parse_positive_int(raw_page)
    if page is None or page > MAX_PAGE:
        page = DEFAULT_PAGE

    page_size = parse_positive_int(raw_page_size)
    if page_size is None or page_size > MAX_PAGE_SIZE:
        page_size = DEFAULT_PAGE_SIZE

    return page, page_size


def page_window(page: int, page_size: int):
    """
    Compute the skip/limit pair to apply to a query.

    Args:
        page (int): Page number, starting at 1.
        page_size (int): Number of elements per page.

    Returns:
        tuple[int, int]: Number of documents to skip and maximum number to return.
    """
    return (page - 1) * page_size, page_size


def count_pages(total: int, page_size: int):
    return math.ceil(total / page_size) if total > 0 else 0


def build_page_url(base_url: str, query: list[tuple[str, str]], page: int, page_size: int):
    """
    Build the absolute URL of one page of the current collection.

    Args:
        base_url (str): Absolute URL of the collection without query string.
        query (list[tuple[str, str]]): Current query parameters in request order.
        page (int): Page to point to.
        page_size (int): Page size to keep.

    Returns:
        str: URL with every other parameter kept and the page parameters overridden.
    """
    params = [(key, value) for key, value in query if key not in (PAGE_PARAM, PAGE_SIZE_PARAM)]
    params.append((PAGE_PARAM, str(page)))
    params.append((PAGE_SIZE_PARAM, str(page_size)))
    return f"{base_url}?{urlencode(params)}"


def build_pagination_links(base_url: str, query: list[tuple[str, str]], page: int, page_size: int, total: int):
    """
    Produce navigation links for a paginated collection.

    ``first`` and ``prev`` only exist after the first page, ``next`` and
    ``last`` only before the last one. A collection that fits on a single
    page, or an empty one, has no links whatever the requested page.

    Args:
        base_url (str): Absolute URL of the collection without query string.
        query (list[tuple[str, str]]): Current query parameters in request order.
        page (int): Current page.
        page_size (int): Current page size.
        total (int): Total number of elements matching the filters.

    Returns:
        dict[str, str]: URLs keyed by relation name.
    """
    max_page = count_pages(total, page_size)
    links = {}
    if max_page <= 1:
        return links

    if page > 1:
        links["first"] = build_page_url(base_url, query, 1, page_size)
        links["prev"] = build_page_url(base_url, query, page - 1, page_size)

    if page < max_page:
        links["next"] = build_page_url(base_url, query, page + 1, page_size)
        links["last"] = build_page_url(base_url, query, max_page, page_size)

    return links


def format_link_header(links: dict[str, str]):
    """
    Format navigation links as an RFC 5988 ``Link`` header value.

    Args:
        links (dict[str, str]): URLs keyed by relation name.

    Returns:
        str | None: Header value, or None when there is nothing to link to.
    """
    if not links:
        return None
    return ", ".join(f'<{url}>; rel="{rel}"' for rel, url in links.items())
