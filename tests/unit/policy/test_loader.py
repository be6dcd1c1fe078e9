import json

import jsonschema
import pytest

from clubauthz.club.rules import PERMISSIONS
from clubauthz.core.errors import RuleSyntaxError, SchemaError
from clubauthz.policy.loader import FileRuleSource, load_rules, parse_rules_text
from clubauthz.policy.validate import document_errors, validate_document

SMALL = {
    "categories": {"allow": {"view": "true", "create": "auth.id in data.role == 'admin'"}},
    "documents": {"allow": {"view": "auth.id in data.playerProfile.user.id"}, "bind": ["status"]},
}


def test_load_rules_from_json_file(tmp_path):
    p = tmp_path / "rules.json"
    p.write_text(json.dumps(SMALL), encoding="utf-8")
    table = load_rules(str(p))
    assert len(table) == 3
    assert table.lookup("categories", "update") is None


def test_load_rules_from_yaml_file(tmp_path):
    p = tmp_path / "rules.yaml"
    p.write_text(
        "categories:\n"
        "  allow:\n"
        "    view: 'true'\n"
        "    delete: auth.id in data.role == 'admin'\n",
        encoding="utf-8",
    )
    table = load_rules(p)
    assert table.lookup("categories", "delete").source == "auth.id in data.role == 'admin'"


def test_load_rules_from_mapping_matches_club_table():
    table = load_rules(PERMISSIONS)
    assert len(table) == 4 * len(PERMISSIONS)


def test_parse_rules_text_detects_format():
    assert parse_rules_text('{"categories": {"allow": {}}}') == {"categories": {"allow": {}}}
    with pytest.raises(SchemaError, match="mapping"):
        parse_rules_text("[1, 2]")
    with pytest.raises(ValueError, match="unsupported"):
        parse_rules_text("{}", format="toml")


def test_parse_yaml_text_with_filename():
    doc = parse_rules_text("tournaments:\n  allow:\n    view: 'true'\n", filename="x.yml")
    assert doc == {"tournaments": {"allow": {"view": "true"}}}


def test_structural_errors_reported():
    bad = {"categories": {"allow": {"list": "true"}}, "coaches": {"bind": ["name"]}}
    errors = document_errors(bad)
    paths = {e["path"] for e in errors}
    assert "categories/allow" in paths and "coaches" in paths
    assert document_errors(SMALL) == []
    with pytest.raises(jsonschema.ValidationError):
        validate_document(bad)


def test_semantic_errors_surface_at_load(tmp_path):
    p = tmp_path / "bad.json"
    p.write_text(json.dumps({"documents": {"allow": {"view": "auth.id in data.owner.id"}}}))
    with pytest.raises(SchemaError, match="unknown relationship"):
        load_rules(str(p))
    with pytest.raises(RuleSyntaxError):
        load_rules({"documents": {"allow": {"view": "auth.id &&"}}})


def test_file_source_can_skip_validation(tmp_path):
    p = tmp_path / "r.json"
    p.write_text(json.dumps({"categories": {"allow": {"view": "true"}, "extra": 1}}))
    assert FileRuleSource(str(p), validate_schema=False).load()["categories"]["extra"] == 1
    with pytest.raises(jsonschema.ValidationError):
        FileRuleSource(str(p)).load()
