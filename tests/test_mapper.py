"""Tests for mapping the catalog onto the problem template."""
import asyncio
import copy
import logging

import orjson
import pytest

from catalog_refresh.config import config
from catalog_refresh.exceptions import MapperInputMissing
from catalog_refresh.mapping.models import ProblemDocument
from catalog_refresh.mapping.problem import (
    combined_mpg,
    load_template,
    map_catalog,
    round_half_away_from_zero,
    to_number,
)


@pytest.fixture
def template():
    return asyncio.run(load_template(config.TEMPLATE_FILE))


def test_combined_mpg_rounds_half_away_from_zero():
    """Test 40 highway / 30 city gives round(34.5) = 35."""
    assert combined_mpg({"city": 30, "highway": 40}) == 35
    assert combined_mpg({"city": "30", "highway": "40"}) == 35


def test_combined_mpg_missing_inputs():
    assert combined_mpg(None) is None
    assert combined_mpg({"city": "30"}) is None
    assert combined_mpg({"city": "n/a", "highway": "40"}) is None


def test_round_half_away_from_zero():
    assert round_half_away_from_zero(2.5) == 3
    assert round_half_away_from_zero(-2.5) == -3
    assert round_half_away_from_zero(2.4) == 2


def test_to_number():
    assert to_number("201") == 201
    assert to_number("2.4") == 2.4
    assert to_number(27900) == 27900
    assert to_number("") is None
    assert to_number(None) is None
    assert to_number(True) is None
    assert to_number(float("nan")) is None
    assert to_number(float("inf")) is None
    assert to_number("Infinity") is None
    assert to_number("-inf") is None
    assert to_number("1e999") is None
    assert to_number({"a": 1}) is None


def test_map_catalog_builds_options(catalog_tree, template):
    """Test one option per retained style with derived values."""
    problem = map_catalog(catalog_tree, template)

    assert problem.subject == "autos"
    assert [option.key for option in problem.options] == [101, 103]

    ilx = problem.options[0]
    assert ilx.name == "Acura ILX"
    assert ilx.description == "4dr Sedan (2.4L 4cyl 8AM)"
    assert ilx.values == {
        "price": 27900,
        "engineSize": 2.4,
        "power": 201,
        "MPGCombined": 35,
        "averageRating": 4.5,
        "reviewsCount": 12,
    }

    a3 = problem.options[1]
    assert a3.values["MPGCombined"] is None
    assert a3.values["averageRating"] is None
    assert a3.values["reviewsCount"] is None


def test_map_catalog_keeps_template_columns(catalog_tree, template):
    """Test columns come from the template unchanged."""
    problem = map_catalog(catalog_tree, template)
    assert [c.key for c in problem.columns] == [c.key for c in template.columns]
    assert template.options == []


def test_duplicate_style_ids_keep_first(catalog_tree, template, caplog):
    """Test a repeated style id is dropped with one diagnostic."""
    duplicate = copy.deepcopy(catalog_tree[0]["models"][0]["years"][0]["styles"][0])
    duplicate["name"] = "Duplicate"
    catalog_tree[1]["models"][1]["years"][0]["styles"] = [duplicate]

    with caplog.at_level(logging.WARNING, logger="catalog_refresh.mapping.problem"):
        problem = map_catalog(catalog_tree, template)

    assert [option.key for option in problem.options] == [101, 103]
    assert problem.options[0].description == "4dr Sedan (2.4L 4cyl 8AM)"
    warnings = [r for r in caplog.records if "duplicate id-101" in r.getMessage()]
    assert len(warnings) == 1


def test_mapping_is_deterministic(catalog_tree, template):
    """Test equivalent trees serialize to identical bytes."""
    first = map_catalog(catalog_tree, template)
    second = map_catalog(copy.deepcopy(catalog_tree), template)
    dump = lambda doc: orjson.dumps(doc.to_json_dict(), option=orjson.OPT_INDENT_2)
    assert dump(first) == dump(second)


def test_to_json_dict_omits_unset_column_fields(template):
    data = ProblemDocument(subject="autos", columns=template.columns[:1]).to_json_dict()
    assert "range" not in data["columns"][0]
    assert data["options"] == []


def test_load_template_missing_file(tmp_path):
    with pytest.raises(MapperInputMissing):
        asyncio.run(load_template(tmp_path / "missing.json"))


def test_load_template_invalid_json(tmp_path):
    path = tmp_path / "template.json"
    path.write_text("{not json")
    with pytest.raises(MapperInputMissing):
        asyncio.run(load_template(path))


def test_load_template_preserves_extra_fields(tmp_path):
    path = tmp_path / "template.json"
    path.write_text('{"subject": "autos", "columns": [], "options": [], "version": 2}')
    problem = map_catalog([], asyncio.run(load_template(path)))
    assert problem.to_json_dict()["version"] == 2


def test_non_finite_mpg_gives_no_combined_value(catalog_tree, template):
    """Test an overflowing fuel economy string is treated as missing."""
    catalog_tree[0]["models"][0]["years"][0]["styles"][0]["MPG"] = {"city": "Infinity", "highway": "40"}
    problem = map_catalog(catalog_tree, template)
    assert problem.options[0].values["MPGCombined"] is None
    assert b"Infinity" not in orjson.dumps(problem.to_json_dict())
