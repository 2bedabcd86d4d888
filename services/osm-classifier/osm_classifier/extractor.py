"""Pull selected OSM tags out into a flat table."""

from __future__ import annotations

import logging
from typing import Dict, Optional, Sequence

import numpy as np
import pandas as pd

from . import tag_codec
from .errors import ConfigurationError
from .tag_codec import OTHER_TAGS_COLUMN

LOGGER = logging.getLogger(__name__)


def extract_tags(
    data: pd.DataFrame,
    tags: Sequence[str],
    na_prop: float = 0.0,
    tags_column: str = OTHER_TAGS_COLUMN,
) -> Optional[pd.DataFrame]:
    """Return one column per requested tag, or None if no tag yields any data.

    Tags with a dedicated column are copied from it; the rest, and column
    tags that fall below ``na_prop``, are read from ``tags_column``. A tag is
    left out when fewer than ``na_prop`` of the features carry it; a blob
    holding the key without a readable value still counts. Columns follow the
    order of ``tags``.
    """
    if not 0.0 <= na_prop <= 1.0:
        raise ConfigurationError(f"na_prop must lie between 0 and 1, got {na_prop}")
    n = len(data)
    min_count = n * na_prop
    extracted: Dict[str, pd.Series] = {}
    from_blobs = []
    for tag in dict.fromkeys(tags):
        if tag in data.columns and tag != tags_column:
            column = data[tag]
            if column.notna().sum() < min_count:
                LOGGER.debug("Column %s below na_prop=%s, trying %s", tag, na_prop, tags_column)
                from_blobs.append(tag)
                continue
            values = np.where(column.notna(), column.to_numpy(dtype=object), None)
            extracted[tag] = pd.Series(values, index=data.index, dtype=object)
        else:
            from_blobs.append(tag)

    if from_blobs and tags_column in data.columns:
        blobs = data[tags_column]
        for tag in from_blobs:
            positions, values = tag_codec.lookup(blobs, tag, keep_missing=True)
            if len(positions) == 0 or len(positions) < min_count:
                LOGGER.debug("Skipping tag %s: found in %s of %s features", tag, len(positions), n)
                continue
            column = np.full(n, None, dtype=object)
            column[positions] = values
            extracted[tag] = pd.Series(column, index=data.index, dtype=object)

    if not extracted:
        return None
    LOGGER.info("Extracted %s of %s requested tags", len(extracted), len(set(tags)))
    return pd.DataFrame({tag: extracted[tag] for tag in tags if tag in extracted}, index=data.index)


def tag_frequencies(blobs) -> pd.Series:
    """Count how many features carry each key in the overflow column, most common first."""
    keys = pd.Series(
        [list(dict.fromkeys(found)) if found else None for found in tag_codec.decode_column(blobs)],
        dtype=object,
    )
    frequencies = keys.explode().value_counts().astype("int64").rename("count")
    frequencies.index.name = "tag"
    return frequencies


__all__ = ["extract_tags", "tag_frequencies"]
