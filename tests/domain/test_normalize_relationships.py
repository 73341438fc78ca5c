from __future__ import annotations

import logging

import pytest

from domain.flattened import FlatEndpoint, FlatRelationship
from domain.models import Relationship
from domain.services.normalize_relationships import (
    normalize_relationship,
    normalize_relationships,
    orient_endpoints,
    pair_columns,
    relationship_description,
)

_RELATIONSHIP = Relationship.model_validate(
    {
        "endpoints": [
            {"tableName": "a", "fieldNames": ["id"]},
            {"tableName": "b", "fieldNames": ["id"]},
        ]
    }
)


def _flat(
    first: tuple[str, tuple[str, ...], str],
    second: tuple[str, tuple[str, ...], str],
    index: int = 0,
) -> FlatRelationship:
    return FlatRelationship(
        index=index,
        endpoints=(FlatEndpoint(*first), FlatEndpoint(*second)),
        relationship=_RELATIONSHIP,
    )


@pytest.mark.parametrize("reverse", [False, True])
def test_many_side_becomes_source_in_either_order(reverse: bool) -> None:
    users = FlatEndpoint("users", ("id",), "1")
    posts = FlatEndpoint("posts", ("user_id",), "*")
    first, second = (posts, users) if reverse else (users, posts)

    source, target = orient_endpoints(first, second)

    assert source.table == "posts"
    assert target.table == "users"


@pytest.mark.parametrize(
    ("first_relation", "second_relation"),
    [("1", "1"), ("*", "*"), ("1", "*")],
)
def test_second_endpoint_is_source_unless_first_is_many_to_one(
    first_relation: str, second_relation: str
) -> None:
    first = FlatEndpoint("left", ("id",), first_relation)
    second = FlatEndpoint("right", ("id",), second_relation)

    source, target = orient_endpoints(first, second)

    assert (source.table, target.table) == ("right", "left")


def test_normalized_relationship_carries_label() -> None:
    item = normalize_relationship(
        _flat(("users", ("id",), "1"), ("posts", ("user_id",), "*"), index=3)
    )

    assert item.index == 3
    assert item.source_table == "posts"
    assert item.source_columns == ("user_id",)
    assert item.label == "*:1"
    assert relationship_description(item, "user_id", "id") == "posts.user_id > users.id"


@pytest.mark.parametrize(
    ("source", "target", "expected"),
    [
        (["a", "b"], ["x", "y"], [("a", "x"), ("b", "y")]),
        (["a", "b", "c"], ["x"], [("a", "x"), ("b", "x"), ("c", "x")]),
        (["a"], ["x", "y"], [("a", "x"), ("a", "y")]),
        ([], ["x"], []),
    ],
)
def test_pair_columns_by_position(
    source: list[str], target: list[str], expected: list[tuple[str, str]]
) -> None:
    assert pair_columns(source, target) == expected


def test_relationships_with_unknown_tables_are_skipped(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING)
    relationships = [
        _flat(("users", ("id",), "1"), ("posts", ("user_id",), "*"), index=0),
        _flat(("users", ("id",), "1"), ("ghosts", ("user_id",), "*"), index=1),
    ]

    normalized = normalize_relationships(relationships, {"users", "posts"})

    assert [item.index for item in normalized] == [0]
    assert "ghosts" in caplog.text


def test_relationships_without_columns_are_skipped() -> None:
    relationships = [_flat(("users", (), "1"), ("posts", ("user_id",), "*"))]

    assert normalize_relationships(relationships, {"users", "posts"}) == []


def test_column_count_mismatch_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING)
    relationships = [_flat(("a", ("id",), "1"), ("b", ("x", "y"), "*"))]

    normalized = normalize_relationships(relationships, {"a", "b"})

    assert len(normalized) == 1
    assert "pairs 2 source column(s) with 1 target column(s)" in caplog.text


def test_one_to_one_description_uses_dash() -> None:
    item = normalize_relationship(_flat(("a", ("id",), "1"), ("b", ("a_id",), "1")))

    assert relationship_description(item, "a_id", "id") == "b.a_id - a.id"
