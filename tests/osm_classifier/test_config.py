from __future__ import annotations

import textwrap

import pytest

from osm_classifier.config import ClassifierConfig
from osm_classifier.errors import ConfigurationError

ENV_VARS = ("OSM_CLASSIFICATION", "OSM_TAGS_COLUMN", "OSM_ALT_SEPARATOR", "OSM_TAGS_NA_PROP")

pytestmark = pytest.mark.smoke


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults_when_file_missing(tmp_path) -> None:
    config = ClassifierConfig.load(tmp_path / "missing.yml")
    assert config == ClassifierConfig()
    assert config.tags_column == "other_tags"


def test_file_then_env_overrides(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "config.yml"
    path.write_text(
        textwrap.dedent(
            """
            classification: line
            tags_column: tags
            na_prop: 0.2
            """
        )
    )
    config = ClassifierConfig.load(path)
    assert config.classification == "line"
    assert config.tags_column == "tags"
    assert config.na_prop == pytest.approx(0.2)

    monkeypatch.setenv("OSM_TAGS_COLUMN", "other_tags")
    monkeypatch.setenv("OSM_TAGS_NA_PROP", "0.5")
    config = ClassifierConfig.load(path)
    assert config.tags_column == "other_tags"
    assert config.na_prop == pytest.approx(0.5)


def test_invalid_values(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OSM_TAGS_NA_PROP", "lots")
    with pytest.raises(ConfigurationError):
        ClassifierConfig.load(tmp_path / "missing.yml")
    monkeypatch.setenv("OSM_TAGS_NA_PROP", "2")
    with pytest.raises(ConfigurationError):
        ClassifierConfig.load(tmp_path / "missing.yml")


def test_non_mapping_file(tmp_path) -> None:
    path = tmp_path / "config.yml"
    path.write_text("- classification\n")
    with pytest.raises(ConfigurationError):
        ClassifierConfig.load(path)


def test_apply_overrides() -> None:
    config = ClassifierConfig()
    config.apply_overrides(classification="line", na_prop=0.1)
    assert config.classification == "line"
    assert config.tags_column == "other_tags"
    assert config.na_prop == pytest.approx(0.1)
    with pytest.raises(ConfigurationError):
        config.apply_overrides(na_prop=-1)
