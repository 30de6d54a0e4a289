"""Shared fixtures: an application wired to in-memory MongoDB and Redis."""

from datetime import datetime

import fakeredis
import mongomock
import pytest

from movies_api.app import create_app
from movies_api.settings import Settings

BASE_URL = "http://localhost:5000"
AUTH_TOKEN = "test-token"


@pytest.fixture
def mongo_client():
    return mongomock.MongoClient()


@pytest.fixture
def redis_client():
    return fakeredis.FakeRedis(server=fakeredis.FakeServer())


@pytest.fixture
def settings():
    return Settings(env="test", base_url=BASE_URL, mongo_db="movies_api-test", auth_token=AUTH_TOKEN)


@pytest.fixture
def app(settings, mongo_client, redis_client):
    app = create_app(settings, mongo_client=mongo_client, redis_client=redis_client)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db(mongo_client, settings):
    return mongo_client[settings.mongo_db]


@pytest.fixture
def make_person(db):
    def make(name, gender="male", **fields):
        document = {"name": name, "gender": gender, "createdAt": datetime(2024, 1, 1), **fields}
        document["_id"] = db["people"].insert_one(document).inserted_id
        return document

    return make


@pytest.fixture
def make_movie(db):
    def make(title, director, **fields):
        document = {"title": title, "director": director["_id"], "reviews": [], "createdAt": datetime(2024, 1, 2), **fields}
        document["_id"] = db["movies"].insert_one(document).inserted_id
        return document

    return make


@pytest.fixture
def make_character(db):
    def make(name, movie, gender="female", **fields):
        document = {"name": name, "gender": gender, "movie": movie["_id"], "createdAt": datetime(2024, 1, 3), **fields}
        document["_id"] = db["characters"].insert_one(document).inserted_id
        return document

    return make
