"""Assign OSM features to functional categories."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np
import pandas as pd

from . import tag_codec
from .errors import SchemaError
from .rules_loader import Category, Classification, TagRule
from .tag_codec import OTHER_TAGS_COLUMN
from .value_spec import MatchAll, match_indices

LOGGER = logging.getLogger(__name__)

RESULT_COLUMNS = [
    "classified",
    "main_category",
    "main_tag",
    "main_tag_value",
    "alt_categories",
    "alt_tag_values",
]


@dataclass
class ClassificationResult:
    classified: bool
    main_category: Optional[str]
    main_tag: Optional[str]
    main_tag_value: Optional[str]
    alt_categories: Optional[List[str]]
    alt_tag_values: Optional[List[str]]


class ClassificationBuffer:
    """Result columns for one classification run, addressed by record position.

    A record gets its main category from the first rule that matches it; every
    later match is appended to its alternates.
    """

    def __init__(self, size: int) -> None:
        self.size = size
        self.classified = np.zeros(size, dtype=bool)
        self.main_category = np.full(size, None, dtype=object)
        self.main_tag = np.full(size, None, dtype=object)
        self.main_tag_value = np.full(size, None, dtype=object)
        self.alt_categories: List[List[str]] = [[] for _ in range(size)]
        self.alt_tag_values: List[List[str]] = [[] for _ in range(size)]

    def record(self, category: str, tag: str, positions: np.ndarray, values: np.ndarray) -> int:
        """Store matches of one rule. Returns how many records were newly classified."""
        seen = self.classified[positions]
        fresh = positions[~seen]
        self.main_category[fresh] = category
        self.main_tag[fresh] = tag
        self.main_tag_value[fresh] = values[~seen]
        for position, value in zip(positions[seen], values[seen]):
            self.alt_categories[position].append(category)
            self.alt_tag_values[position].append(f'{tag}:"{value}"')
        self.classified[positions] = True
        return len(fresh)

    def results(self) -> List[ClassificationResult]:
        return [
            ClassificationResult(
                classified=bool(self.classified[i]),
                main_category=self.main_category[i],
                main_tag=self.main_tag[i],
                main_tag_value=self.main_tag_value[i],
                alt_categories=self.alt_categories[i] or None,
                alt_tag_values=self.alt_tag_values[i] or None,
            )
            for i in range(self.size)
        ]

    def to_frame(self, index: pd.Index, separator: Optional[str] = ", ") -> pd.DataFrame:
        """Build the result table. With ``separator=None`` alternates stay lists."""

        def _alternates(column: List[List[str]]) -> List:
            if separator is None:
                return [entries or None for entries in column]
            return [separator.join(entries) if entries else None for entries in column]

        return pd.DataFrame(
            {
                "classified": self.classified,
                "main_category": self.main_category,
                "main_tag": self.main_tag,
                "main_tag_value": self.main_tag_value,
                "alt_categories": _alternates(self.alt_categories),
                "alt_tag_values": _alternates(self.alt_tag_values),
            },
            index=index,
            columns=RESULT_COLUMNS,
        )


class ClassificationEngine:
    """Match features against a classification, first matching category wins."""

    def __init__(
        self,
        classification: Classification,
        tags_column: str = OTHER_TAGS_COLUMN,
        alt_separator: str = ", ",
    ) -> None:
        if not isinstance(classification, Classification):
            classification = Classification.from_mapping(classification)
        self.classification = classification
        self.tags_column = tags_column
        self.alt_separator = alt_separator

    def classify(self, data: pd.DataFrame, join_alternates: bool = True) -> pd.DataFrame:
        """Classify every feature in ``data``; one result row per feature, same index."""
        buffer = self._run(data)
        return buffer.to_frame(data.index, self.alt_separator if join_alternates else None)

    def classify_records(self, data: pd.DataFrame) -> List[ClassificationResult]:
        return self._run(data).results()

    def _run(self, data: pd.DataFrame) -> ClassificationBuffer:
        self._validate(data)
        buffer = ClassificationBuffer(len(data))
        columns = set(data.columns)
        columns.discard(self.tags_column)
        blobs = data[self.tags_column]
        for category in self.classification.ordered():
            self._apply_category(category, data, columns, blobs, buffer)
        classified = int(buffer.classified.sum())
        LOGGER.info(
            "Classified %s of %s features (%.1f%%) using %s categories",
            classified,
            buffer.size,
            100.0 * classified / buffer.size if buffer.size else 0.0,
            len(self.classification),
        )
        return buffer

    def _apply_category(
        self,
        category: Category,
        data: pd.DataFrame,
        columns: set,
        blobs: pd.Series,
        buffer: ClassificationBuffer,
    ) -> None:
        matched = 0
        for rule in category.rules:
            positions, values = self._resolve(rule, data, columns, blobs)
            if not len(positions):
                continue
            fresh = buffer.record(category.name, rule.tag, positions, values)
            matched += len(positions)
            LOGGER.debug(
                "category=%s tag=%s matched=%s new=%s",
                category.name,
                rule.tag,
                len(positions),
                fresh,
            )
        if not matched:
            LOGGER.debug("category=%s matched no features", category.name)

    def _resolve(self, rule: TagRule, data: pd.DataFrame, columns: set, blobs: pd.Series):
        if rule.tag in columns:
            observed = data[rule.tag].to_numpy(dtype=object)
            positions = match_indices(observed, rule.spec)
            return positions, observed[positions]
        positions, values = tag_codec.lookup(blobs, rule.tag)
        if len(positions) and not isinstance(rule.spec, MatchAll):
            keep = match_indices(values, rule.spec)
            positions, values = positions[keep], values[keep]
        return positions, values

    def _validate(self, data: pd.DataFrame) -> None:
        if not isinstance(data, pd.DataFrame):
            raise SchemaError(f"features must be a pandas DataFrame, got {type(data).__name__}")
        if data.columns.hasnans:
            raise SchemaError("feature columns must all be named")
        if data.columns.has_duplicates:
            duplicated = sorted(map(str, data.columns[data.columns.duplicated()]))
            raise SchemaError(f"feature columns must be uniquely named; duplicates: {duplicated}")
        if self.tags_column not in data.columns:
            raise SchemaError(
                f"features need a '{self.tags_column}' column holding the OSM tag strings"
            )


def classify(
    data: pd.DataFrame,
    classification: Classification,
    tags_column: str = OTHER_TAGS_COLUMN,
) -> pd.DataFrame:
    """Shortcut for ``ClassificationEngine(classification, tags_column).classify(data)``."""
    return ClassificationEngine(classification, tags_column=tags_column).classify(data)


__all__ = [
    "ClassificationBuffer",
    "ClassificationEngine",
    "ClassificationResult",
    "RESULT_COLUMNS",
    "classify",
]
