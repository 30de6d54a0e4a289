"""Tests for the left aggregation of related documents."""

from bson import ObjectId

from movies_api.core.aggregation import attach_counts, build_count_pipeline, count_related, with_related_counts


class RecordingCollection:
    """Collection double that records aggregation pipelines."""

    name = "movies"

    def __init__(self, results=()):
        self.results = list(results)
        self.pipelines = []

    def aggregate(self, pipeline):
        self.pipelines.append(pipeline)
        return iter(self.results)


def test_empty_input_issues_no_query():
    collection = RecordingCollection()
    assert count_related(collection, "director", []) == {}
    assert collection.pipelines == []


def test_single_grouped_query_for_many_parents():
    ids = [ObjectId() for _ in range(5)]
    collection = RecordingCollection([{"_id": ids[0], "count": 3}])

    count_related(collection, "director", ids)

    assert len(collection.pipelines) == 1
    assert collection.pipelines[0] == build_count_pipeline("director", ids)


def test_pipeline_matches_then_groups_on_foreign_key():
    ids = [ObjectId()]
    assert build_count_pipeline("movie", ids) == [
        {"$match": {"movie": {"$in": ids}}},
        {"$group": {"_id": "$movie", "count": {"$sum": 1}}},
    ]


def test_zero_counts_are_backfilled():
    ids = [ObjectId() for _ in range(4)]
    collection = RecordingCollection([{"_id": ids[1], "count": 2}])

    counts = count_related(collection, "director", ids)

    assert len(counts) == 4
    assert counts == {ids[0]: 0, ids[1]: 2, ids[2]: 0, ids[3]: 0}
    assert sum(1 for value in counts.values() if value == 0) == 3


def test_attach_counts_keeps_every_document_in_order():
    people = [{"_id": ObjectId(), "name": name} for name in ("Ann", "Bob", "Cid")]
    enriched = attach_counts(people, {people[1]["_id"]: 4}, "directedMovies")

    assert [person["name"] for person in enriched] == ["Ann", "Bob", "Cid"]
    assert [person["directedMovies"] for person in enriched] == [0, 4, 0]
    assert "directedMovies" not in people[0]


def test_counts_against_store(db, make_person, make_movie):
    jane = make_person("Jane Smith", "female")
    john = make_person("John Smith")
    nobody = make_person("Nobody Here", "other")
    make_movie("An Amazing Story", jane)
    make_movie("A Bad Story", jane)
    make_movie("A So-So Story", john)

    enriched = with_related_counts([jane, john, nobody], db["movies"], "director", "directedMovies")

    assert [person["directedMovies"] for person in enriched] == [2, 1, 0]
