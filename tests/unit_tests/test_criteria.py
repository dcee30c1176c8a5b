import pytest
from pydantic import ValidationError

from docbatch.cursor.criteria import FilterCriteria


def test_predicate_copied_on_construction():
    predicate = {"rs": {"$exists": False}}
    criteria = FilterCriteria(predicate=predicate)

    predicate["rs"]["$exists"] = True

    assert criteria.as_query() == {"rs": {"$exists": False}}


def test_query_cannot_change_criteria():
    criteria = FilterCriteria(predicate={"study": {"$in": ["PRJEB1"]}})

    query = criteria.as_query()
    query["study"]["$in"].append("PRJEB2")

    assert criteria.as_query() == {"study": {"$in": ["PRJEB1"]}}


def test_criteria_is_frozen():
    criteria = FilterCriteria(predicate={"rs": 1})

    with pytest.raises(ValidationError):
        criteria.predicate = {}


def test_empty_criteria_matches_everything():
    assert FilterCriteria().as_query() == {}
