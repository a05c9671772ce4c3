from __future__ import annotations

import os

import pytest
import yaml

from okta_setup.config.property_sources import (
    EnvFilePropertySource,
    PropertiesFilePropertySource,
    YamlPropertySource,
    flatten_mapping,
    parse_properties,
    to_env_key,
)
from okta_setup.exceptions import ClientConfigurationError

# ---- YAML ----


def test_yaml_missing_file_reads_as_empty(tmp_path):
    source = YamlPropertySource(tmp_path / "application.yml")
    assert source.get_property("okta.oauth2.issuer") is None
    assert not source.exists()


def test_yaml_nested_lookup(tmp_path):
    path = tmp_path / "application.yml"
    path.write_text("okta:\n  oauth2:\n    issuer: https://x/oauth2/default\nserver:\n  port: 8080\n")
    source = YamlPropertySource(path)

    assert source.get_property("okta.oauth2.issuer") == "https://x/oauth2/default"
    assert source.get_property("server.port") == "8080"


def test_yaml_merge_creates_parent_directories(tmp_path):
    path = tmp_path / "src" / "main" / "resources" / "application.yml"
    source = YamlPropertySource(path)

    source.add_properties({"okta.oauth2.client-id": "0oa1"})

    assert yaml.safe_load(path.read_text()) == {"okta": {"oauth2": {"client-id": "0oa1"}}}


def test_yaml_merge_keeps_unrelated_keys(tmp_path):
    path = tmp_path / "application.yml"
    path.write_text(
        "spring:\n  application:\n    name: demo\nokta:\n  oauth2:\n    issuer: old\n"
    )
    source = YamlPropertySource(path)

    source.add_properties({"okta.oauth2.issuer": "new", "okta.oauth2.client-id": "0oa1"})

    assert yaml.safe_load(path.read_text()) == {
        "spring": {"application": {"name": "demo"}},
        "okta": {"oauth2": {"issuer": "new", "client-id": "0oa1"}},
    }


def test_yaml_merge_updates_dotted_keys_in_place(tmp_path):
    path = tmp_path / "application.yml"
    path.write_text("okta.oauth2.issuer: old\n")
    source = YamlPropertySource(path)

    source.add_properties({"okta.oauth2.issuer": "new"})

    assert yaml.safe_load(path.read_text()) == {"okta.oauth2.issuer": "new"}


def test_yaml_conflicting_scalar_leaves_file_untouched(tmp_path):
    path = tmp_path / "application.yml"
    path.write_text("okta: enabled\n")
    source = YamlPropertySource(path)

    with pytest.raises(ClientConfigurationError):
        source.add_properties({"okta.oauth2.issuer": "x"})

    assert path.read_text() == "okta: enabled\n"


def test_yaml_non_mapping_document_rejected(tmp_path):
    path = tmp_path / "application.yml"
    path.write_text("- a\n- b\n")
    with pytest.raises(ClientConfigurationError):
        YamlPropertySource(path).get_property("a")


def test_flatten_mapping_formats_scalars():
    assert flatten_mapping({"a": {"b": True, "c": 3, "d": None, "e": [1]}}) == {
        "a.b": "true",
        "a.c": "3",
    }


# ---- properties ----


def test_properties_parse_separators_and_continuations():
    text = (
        "# comment\n"
        "! other comment\n"
        "a=1\n"
        "b : 2\n"
        "c 3\n"
        "d=multi \\\n"
        "    line\n"
        "e\\=key=value\n"
        "f=\\u0041\\tB\n"
        "\n"
    )
    entries = {k: v for k, v, _ in parse_properties(text) if k is not None}
    assert entries == {
        "a": "1",
        "b": "2",
        "c": "3",
        "d": "multi line",
        "e=key": "value",
        "f": "A\tB",
    }


def test_properties_last_duplicate_wins(tmp_path):
    path = tmp_path / "application.properties"
    path.write_text("a=1\na=2\n")
    assert PropertiesFilePropertySource(path).get_property("a") == "2"


def test_properties_merge_preserves_comments_and_order(tmp_path):
    path = tmp_path / "application.properties"
    path.write_text(
        "# server settings\nserver.port=8080\nokta.oauth2.issuer=old\n\n# tail\n",
        encoding="latin-1",
    )
    source = PropertiesFilePropertySource(path)

    source.add_properties(
        {"okta.oauth2.issuer": "https://x/oauth2/default", "okta.oauth2.client-id": "0oa1"}
    )

    assert path.read_text(encoding="latin-1") == (
        "# server settings\n"
        "server.port=8080\n"
        "okta.oauth2.issuer=https://x/oauth2/default\n"
        "\n"
        "# tail\n"
        "okta.oauth2.client-id=0oa1\n"
    )


def test_properties_merge_drops_stale_duplicates(tmp_path):
    path = tmp_path / "application.properties"
    path.write_text("a=1\nb=2\na=3\n")
    source = PropertiesFilePropertySource(path)

    source.add_properties({"a": "9"})

    assert path.read_text() == "a=9\nb=2\n"


def test_properties_merge_appends_newline_to_last_line(tmp_path):
    path = tmp_path / "application.properties"
    path.write_text("a=1")
    PropertiesFilePropertySource(path).add_properties({"b": "2"})
    assert path.read_text() == "a=1\nb=2\n"


def test_properties_values_are_escaped(tmp_path):
    path = tmp_path / "application.properties"
    source = PropertiesFilePropertySource(path)

    source.add_properties({"key with:sep": " lead\\slash€"})

    assert source.get_property("key with:sep") == " lead\\slash€"
    assert "\\u20ac" in path.read_text(encoding="latin-1")


def test_properties_supplementary_characters_use_surrogate_pairs(tmp_path):
    path = tmp_path / "application.properties"
    source = PropertiesFilePropertySource(path)

    source.add_properties({"greeting": "hi \U0001F600"})

    assert path.read_text(encoding="latin-1") == "greeting=hi \\ud83d\\ude00\n"
    assert source.get_property("greeting") == "hi \U0001F600"


def test_properties_reads_surrogate_pairs_written_by_java(tmp_path):
    path = tmp_path / "application.properties"
    path.write_text("emoji=\\uD83D\\uDE00!\n", encoding="latin-1")

    assert PropertiesFilePropertySource(path).get_property("emoji") == "\U0001F600!"


def test_properties_failed_write_leaves_original(tmp_path, monkeypatch):
    path = tmp_path / "application.properties"
    path.write_text("a=1\n")
    source = PropertiesFilePropertySource(path)

    def broken_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(os, "replace", broken_replace)
    with pytest.raises(OSError, match="disk full"):
        source.add_properties({"a": "2", "b": "3"})

    assert path.read_text() == "a=1\n"
    assert [p.name for p in tmp_path.iterdir()] == ["application.properties"]


# ---- dotenv ----


def test_to_env_key():
    assert to_env_key("okta.oauth2.client-id") == "OKTA_OAUTH2_CLIENT_ID"
    assert (
        to_env_key("spring.security.oauth2.client.provider.okta.issuer-uri")
        == "SPRING_SECURITY_OAUTH2_CLIENT_PROVIDER_OKTA_ISSUER_URI"
    )


def test_env_merge_and_lookup(tmp_path):
    path = tmp_path / ".env"
    path.write_text("# local settings\nDEBUG=true\nexport OKTA_OAUTH2_ISSUER=old\n")
    source = EnvFilePropertySource(path)

    source.add_properties(
        {
            "okta.oauth2.issuer": "https://x/oauth2/default",
            "okta.oauth2.client-secret": "s3cr3t with space",
        }
    )

    assert path.read_text() == (
        "# local settings\n"
        "DEBUG=true\n"
        "export OKTA_OAUTH2_ISSUER=https://x/oauth2/default\n"
        'export OKTA_OAUTH2_CLIENT_SECRET="s3cr3t with space"\n'
    )
    assert source.get_property("okta.oauth2.issuer") == "https://x/oauth2/default"
    assert source.get_property("okta.oauth2.client-secret") == "s3cr3t with space"
    assert source.get_property("DEBUG") == "true"


def test_env_quoting_round_trips_special_characters(tmp_path):
    source = EnvFilePropertySource(tmp_path / ".env")
    value = 'a "quoted" \\ value # not a comment'

    source.add_properties({"okta.oauth2.client-secret": value})

    assert source.get_property("okta.oauth2.client-secret") == value


def test_env_missing_file(tmp_path):
    assert EnvFilePropertySource(tmp_path / ".env").get_property("a") is None


def test_env_merge_replaces_every_line_of_multiline_value(tmp_path):
    path = tmp_path / ".env"
    path.write_text(
        'DEBUG=true\n\nOKTA_OAUTH2_CLIENT_ID="abc\ndef"\n# trailing\nOTHER=1\n'
    )
    source = EnvFilePropertySource(path)

    source.add_properties({"okta.oauth2.client-id": "new"})

    assert path.read_text() == (
        "DEBUG=true\n\nexport OKTA_OAUTH2_CLIENT_ID=new\n# trailing\nOTHER=1\n"
    )
    assert source.get_property("okta.oauth2.client-id") == "new"
    assert source.get_property("OTHER") == "1"


def test_env_multiline_value_round_trips(tmp_path):
    source = EnvFilePropertySource(tmp_path / ".env")

    source.add_properties({"okta.oauth2.client-secret": "line one\r\nline two"})
    source.add_properties({"okta.oauth2.issuer": "https://x/oauth2/default"})

    assert source.get_property("okta.oauth2.client-secret") == "line one\r\nline two"
    assert source.get_property("okta.oauth2.issuer") == "https://x/oauth2/default"
