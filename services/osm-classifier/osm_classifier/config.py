"""Configuration helpers for the OSM classifier."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

import yaml

from .errors import ConfigurationError
from .tag_codec import OTHER_TAGS_COLUMN

DEFAULT_CONFIG_PATH = Path("osm-classifier.yml")
DEFAULT_CLASSIFICATION = "point_polygon"


def _as_float(raw, name: str) -> float:
    try:
        return float(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc


@dataclass
class ClassifierConfig:
    """Runtime knobs for classification and tag extraction."""

    classification: str = DEFAULT_CLASSIFICATION
    tags_column: str = OTHER_TAGS_COLUMN
    alt_separator: str = ", "
    na_prop: float = 0.0

    @classmethod
    def load(cls, path: Path = DEFAULT_CONFIG_PATH) -> "ClassifierConfig":
        raw: Dict = {}
        if path.exists():
            with path.open("r", encoding="utf-8") as handle:
                raw_data = yaml.safe_load(handle) or {}
                if not isinstance(raw_data, dict):
                    raise ConfigurationError(f"{path} must contain a mapping of settings")
                raw = raw_data
        classification = str(raw.get("classification", cls.classification))
        tags_column = str(raw.get("tags_column", cls.tags_column))
        alt_separator = str(raw.get("alt_separator", cls.alt_separator))
        na_prop = raw.get("na_prop", cls.na_prop)

        # Environment overrides take precedence.
        classification = os.environ.get("OSM_CLASSIFICATION", classification)
        tags_column = os.environ.get("OSM_TAGS_COLUMN", tags_column)
        alt_separator = os.environ.get("OSM_ALT_SEPARATOR", alt_separator)
        na_prop = _as_float(os.environ.get("OSM_TAGS_NA_PROP", na_prop), "na_prop")

        config = cls(
            classification=classification,
            tags_column=tags_column,
            alt_separator=alt_separator,
            na_prop=na_prop,
        )
        config.validate()
        return config

    def apply_overrides(
        self,
        classification: Optional[str] = None,
        tags_column: Optional[str] = None,
        na_prop: Optional[float] = None,
    ) -> None:
        if classification:
            self.classification = classification
        if tags_column:
            self.tags_column = tags_column
        if na_prop is not None:
            self.na_prop = na_prop
        self.validate()

    def validate(self) -> None:
        if not 0.0 <= self.na_prop <= 1.0:
            raise ConfigurationError(f"na_prop must lie between 0 and 1, got {self.na_prop}")
        if not self.tags_column:
            raise ConfigurationError("tags_column must not be empty")


__all__ = ["ClassifierConfig", "DEFAULT_CLASSIFICATION", "DEFAULT_CONFIG_PATH"]
