import pytest

from services.prefect_ids import parse_prefect_ids, serialize_prefect_ids, involves_prefect


def test_single_id_stays_plain():
    assert serialize_prefect_ids(["abc"]) == "abc"
    assert parse_prefect_ids("abc") == ["abc"]


def test_several_ids_become_compact_json():
    stored = serialize_prefect_ids(["a", "b", "c"])
    assert stored == '["a","b","c"]'
    assert parse_prefect_ids(stored) == ["a", "b", "c"]


def test_empty_ids_rejected():
    with pytest.raises(ValueError, match="At least one prefect is required"):
        serialize_prefect_ids([])
    with pytest.raises(ValueError, match="Prefect ids cannot be blank"):
        serialize_prefect_ids(["", None])


@pytest.mark.parametrize("ids", [["a", ""], ["a", None], ["a", "  "]])
def test_blank_id_among_others_rejected(ids):
    with pytest.raises(ValueError, match="Prefect ids cannot be blank"):
        serialize_prefect_ids(ids)


@pytest.mark.parametrize("value", [None, ""])
def test_parse_empty(value):
    assert parse_prefect_ids(value) == []


def test_malformed_json_is_a_single_id():
    assert parse_prefect_ids('["a",') == ['["a",']


def test_bracket_edge_cases():
    assert parse_prefect_ids("[") == ["["]
    assert parse_prefect_ids("[1]") == ["1"]


def test_involves_prefect():
    shared = serialize_prefect_ids(["p1", "p2"])
    assert involves_prefect(shared, "p2")
    assert not involves_prefect(shared, "p3")
    assert involves_prefect("p1", "p1")
    assert not involves_prefect(None, "p1")
