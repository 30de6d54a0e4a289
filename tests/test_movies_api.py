"""End-to-end tests for /api/movies."""

from bson import ObjectId

from tests.conftest import BASE_URL


def test_create_movie_with_existing_director(client, db, make_person):
    jane = make_person("Jane Smith", "female")

    res = client.post("/api/movies", json={"title": "An Amazing Story", "rating": 9.5, "director": str(jane["_id"])})

    assert res.status_code == 201
    body = res.get_json()
    assert body["director"] == str(jane["_id"])
    assert body["rating"] == 9.5
    assert body["characters"] == 0
    assert body["reviews"] == []
    assert res.headers["Location"] == f"{BASE_URL}/api/movies/{body['id']}"
    assert db["movies"].find_one({"_id": ObjectId(body["id"])})["director"] == jane["_id"]


def test_create_movie_with_unknown_director(client, db):
    missing = str(ObjectId())

    res = client.post("/api/movies", json={"title": "An Amazing Story", "director": missing})

    assert res.status_code == 422
    error = res.get_json()["errors"]["director"]
    assert error["kind"] == "exists"
    assert error["message"] == f"{missing} does not reference an existing Person"
    assert db["movies"].count_documents({}) == 0


def test_create_movie_with_malformed_director(client):
    res = client.post("/api/movies", json={"title": "An Amazing Story", "director": "jane"})

    assert res.status_code == 422
    assert res.get_json()["errors"]["director"]["kind"] == "ObjectId"


def test_create_movie_with_non_finite_rating(client, db, make_person):
    jane = make_person("Jane Smith", "female")
    body = f'{{"title": "An Amazing Story", "rating": NaN, "director": "{jane["_id"]}"}}'

    res = client.post("/api/movies", data=body, content_type="application/json")

    assert res.status_code == 422
    assert res.get_json()["errors"]["rating"]["kind"] == "Number"
    assert db["movies"].count_documents({}) == 0

    res = client.post("/api/movies", json={"title": "An Amazing Story", "rating": "inf", "director": str(jane["_id"])})
    assert res.status_code == 422
    assert db["movies"].count_documents({}) == 0


def test_create_movie_with_reviews(client, make_person):
    jane = make_person("Jane Smith", "female")
    res = client.post(
        "/api/movies",
        json={"title": "A Bad Story", "director": str(jane["_id"]), "reviews": [{"author": "Critic", "comment": "Dull plot."}]},
    )

    assert res.status_code == 201
    reviews = res.get_json()["reviews"]
    assert reviews[0]["author"] == "Critic"
    assert reviews[0]["comment"] == "Dull plot."
    assert reviews[0]["postedAt"].endswith("Z")


def test_list_movies_sorted_with_character_counts(client, make_person, make_movie, make_character):
    jane = make_person("Jane Smith", "female")
    amazing = make_movie("An Amazing Story", jane, rating=10)
    make_movie("A Bad Story", jane, rating=2)
    make_character("Heroine", amazing)
    make_character("Sidekick", amazing, gender="male")

    body = client.get("/api/movies").get_json()

    assert [movie["title"] for movie in body] == ["A Bad Story", "An Amazing Story"]
    assert [movie["characters"] for movie in body] == [0, 2]
    assert body[0]["director"] == str(jane["_id"])


def test_list_movies_filters(client, make_person, make_movie):
    jane = make_person("Jane Smith", "female")
    john = make_person("John Smith")
    make_movie("An Amazing Story", jane, rating=10)
    make_movie("A Bad Story", jane, rating=2)
    make_movie("A So-So Story", john, rating=4)

    def titles(query):
        return [movie["title"] for movie in client.get(f"/api/movies?{query}").get_json()]

    assert titles(f"director={jane['_id']}") == ["A Bad Story", "An Amazing Story"]
    assert titles("rating=4") == ["A So-So Story"]
    assert titles("ratedAtLeast=3") == ["A So-So Story", "An Amazing Story"]
    assert titles("ratedAtMost=4") == ["A Bad Story", "A So-So Story"]
    assert titles("ratedAtLeast=3&ratedAtMost=5") == ["A So-So Story"]
    assert len(titles("director=nobody&ratedAtLeast=abc")) == 3


def test_list_movies_include_director(client, make_person, make_movie):
    jane = make_person("Jane Smith", "female")
    make_movie("An Amazing Story", jane)

    body = client.get("/api/movies?include=director").get_json()

    assert body[0]["director"]["id"] == str(jane["_id"])
    assert body[0]["director"]["name"] == "Jane Smith"


def test_list_movies_links_keep_filters(client, make_person, make_movie):
    jane = make_person("Jane Smith", "female")
    for index in range(3):
        make_movie(f"Story {index}", jane, rating=5)

    res = client.get("/api/movies?ratedAtLeast=5&pageSize=1&include=director")

    assert len(res.get_json()) == 1
    assert res.headers["Link"] == ", ".join(
        [
            f'<{BASE_URL}/api/movies?ratedAtLeast=5&include=director&page=2&pageSize=1>; rel="next"',
            f'<{BASE_URL}/api/movies?ratedAtLeast=5&include=director&page=3&pageSize=1>; rel="last"',
        ]
    )


def test_get_movie_include_director(client, make_person, make_movie):
    jane = make_person("Jane Smith", "female")
    movie = make_movie("An Amazing Story", jane)

    plain = client.get(f"/api/movies/{movie['_id']}").get_json()
    expanded = client.get(f"/api/movies/{movie['_id']}?include=director").get_json()

    assert plain["director"] == str(jane["_id"])
    assert expanded["director"]["name"] == "Jane Smith"


def test_get_unknown_movie(client):
    res = client.get("/api/movies/123")
    assert res.status_code == 404
    assert res.get_data(as_text=True) == "No movie found with ID 123"


def test_patch_movie_director_must_exist(client, db, make_person, make_movie):
    jane = make_person("Jane Smith", "female")
    movie = make_movie("An Amazing Story", jane, rating=7)

    res = client.patch(f"/api/movies/{movie['_id']}", json={"director": str(ObjectId())})

    assert res.status_code == 422
    assert db["movies"].find_one({"_id": movie["_id"]})["director"] == jane["_id"]


def test_patch_movie_keeps_other_fields(client, make_person, make_movie):
    jane = make_person("Jane Smith", "female")
    john = make_person("John Smith")
    movie = make_movie("An Amazing Story", jane, rating=7)

    body = client.patch(f"/api/movies/{movie['_id']}", json={"director": str(john["_id"])}).get_json()

    assert body["title"] == "An Amazing Story"
    assert body["rating"] == 7
    assert body["director"] == str(john["_id"])


def test_put_movie_drops_missing_optional_fields(client, make_person, make_movie):
    jane = make_person("Jane Smith", "female")
    movie = make_movie("An Amazing Story", jane, rating=7)

    res = client.put(f"/api/movies/{movie['_id']}", json={"title": "An Amazing Story", "director": str(jane["_id"])})

    assert res.status_code == 200
    assert "rating" not in res.get_json()


def test_put_movie_requires_json(client, make_person, make_movie):
    movie = make_movie("An Amazing Story", make_person("Jane Smith", "female"))
    res = client.put(f"/api/movies/{movie['_id']}", data="title", content_type="text/plain")
    assert res.status_code == 415


def test_delete_movie_with_characters_is_refused(client, db, make_person, make_movie, make_character):
    movie = make_movie("An Amazing Story", make_person("Jane Smith", "female"))
    make_character("Heroine", movie)

    res = client.delete(f"/api/movies/{movie['_id']}")

    assert res.status_code == 409
    assert db["movies"].count_documents({}) == 1


def test_cached_listing_is_invalidated_by_writes(client, make_person):
    jane = make_person("Jane Smith", "female")
    assert client.get("/api/movies").get_json() == []

    client.post("/api/movies", json={"title": "An Amazing Story", "director": str(jane["_id"])})

    assert len(client.get("/api/movies").get_json()) == 1
    assert client.get("/api/people").get_json()[0]["directedMovies"] == 1
