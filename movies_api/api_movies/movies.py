from flask import Blueprint, current_app, request

from movies_api.api_movies.movies_functions import build_movies_query, merge_movie_update, present_movie, present_movies, validate_movie
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
from movies_api.core.integrity import ensure_not_referenced
from movies_api.core.validation import utc_now

movies_api = Blueprint("movies", __name__, url_prefix="/api/movies")


@movies_api.route("", methods=["GET"])
def get_movies():
    """
    Handle GET requests for the movies listing.

    Returns:
        Response: Flask response with one page of movies and a ``Link`` header.
    """
    db = get_db()

    def build():
        movies, links = find_page(db["movies"], build_movies_query(request.args), [("title", 1)])
        return present_movies(movies, db, get_includes()), links

    return cached_list_response(list_cache_key("movies"), build)


@movies_api.route("", methods=["POST"])
def create_movie():
    """
    Handle POST requests that create a movie.

    The director reference is checked before anything is written.

    Returns:
        Response: Created movie with status 201 and a ``Location`` header.
    """
    db = get_db()
    body = get_json_body()

    movie = validate_movie(body, db)
    movie["createdAt"] = utc_now()

    result = db["movies"].insert_one(movie)
    created = db["movies"].find_one({"_id": result.inserted_id})
    get_cache().invalidate()
    current_app.logger.info('Created movie "%s" (%s)', created["title"], created["_id"])
    return created_response(present_movie(created, db, get_includes()), "api", "movies", str(created["_id"]))


@movies_api.route("/<movie_id>", methods=["GET"])
def get_movie(movie_id: str):
    db = get_db()

    def build():
        movie = load_document(db["movies"], movie_id, "movie")
        return present_movie(movie, db, get_includes())

    return cached_detail_response(detail_cache_key("movies", movie_id), build)


@movies_api.route("/<movie_id>", methods=["PATCH"])
def patch_movie(movie_id: str):
    db = get_db()
    movie = load_document(db["movies"], movie_id, "movie")
    body = get_json_body()

    updates = validate_movie(merge_movie_update(movie, body), db, movie["_id"])
    return save_movie(movie, updates)


@movies_api.route("/<movie_id>", methods=["PUT"])
def put_movie(movie_id: str):
    db = get_db()
    movie = load_document(db["movies"], movie_id, "movie")
    body = get_json_body()

    replacement = validate_movie(body, db, movie["_id"])
    return save_movie(movie, replacement)


def save_movie(movie: dict, fields: dict):
    db = get_db()
    replacement = dict(fields)
    replacement["createdAt"] = movie.get("createdAt")

    db["movies"].replace_one({"_id": movie["_id"]}, replacement)
    saved = db["movies"].find_one({"_id": movie["_id"]})
    get_cache().invalidate()
    current_app.logger.info('Updated movie "%s" (%s)', saved["title"], saved["_id"])
    return present_movie(saved, db, get_includes())


@movies_api.route("/<movie_id>", methods=["DELETE"])
def delete_movie(movie_id: str):
    """
    Handle DELETE requests, refused while characters still appear in the movie.

    Args:
        movie_id (str): Identifier from the path segment.

    Returns:
        tuple: Empty body with status 204.
    """
    db = get_db()
    movie = load_document(db["movies"], movie_id, "movie")

    message = f'Cannot delete movie "{movie["title"]}" ({movie["_id"]}) because characters still reference it'
    ensure_not_referenced(db["characters"], "movie", movie["_id"], message)

    db["movies"].delete_one({"_id": movie["_id"]})
    get_cache().invalidate()
    current_app.logger.info('Deleted movie "%s" (%s)', movie["title"], movie["_id"])
    return "", 204
