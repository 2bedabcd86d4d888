"""Read tags packed into the OSM ``other_tags`` column.

GDAL and ogr2ogr exports keep the frequent OSM keys in dedicated columns and
pack everything else into one hstore-style string per feature::

    "opening_hours"=>"Mo-Fr 08:00-17:00","shop"=>"bakery"

Lookups scan for the literal ``"key"=>`` prefix and pull out the quoted value
that follows it, so querying one key never parses the rest of the blob.
Escaped quotes inside values are not unescaped; a value containing ``"`` is
cut at that quote.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

LOGGER = logging.getLogger(__name__)

OTHER_TAGS_COLUMN = "other_tags"

_PAIR_SPLIT = re.compile(r'","|"=>"')

Pairs = Union[Mapping[str, str], Iterable[Tuple[str, str]]]


def _key_token(key: str) -> str:
    return f'"{key}"=>'


def _value_pattern(key: str) -> re.Pattern:
    return re.compile(re.escape(_key_token(key)) + r'"(.*?)"')


def _as_series(blobs) -> pd.Series:
    if isinstance(blobs, pd.Series):
        series = blobs.reset_index(drop=True)
    else:
        series = pd.Series(list(blobs), dtype=object)
    if series.dtype != object:
        series = series.astype(object)
    return series


def _unwrap(blob: str) -> str:
    text = blob.strip()
    # Some CSV exports wrap the whole blob in an extra pair of quotes.
    if len(text) >= 2 and text[0] == text[-1] == "'":
        text = text[1:-1]
    elif text.startswith('""') and text.endswith('""'):
        text = text[1:-1]
    if text.startswith('"'):
        text = text[1:]
    if text.endswith('"'):
        text = text[:-1]
    return text


def has_key(blob: Optional[str], key: str) -> bool:
    """Return True if ``"key"=>`` occurs in the blob. Missing blobs have no keys."""
    if not isinstance(blob, str):
        return False
    return _key_token(key) in blob


def extract_value(blob: Optional[str], key: str) -> Optional[str]:
    """Return the first value stored under ``key``, or None if it is absent."""
    if not has_key(blob, key):
        return None
    match = _value_pattern(key).search(blob)
    if match is None:
        return None
    return match.group(1)


def decode(blob: Optional[str], include_values: bool = False) -> Optional[List]:
    """Split a blob into its keys, or ``(key, value)`` pairs when ``include_values``.

    Returns None for missing input and for blobs that hold no complete pair.
    """
    if not isinstance(blob, str):
        return None
    parts = _PAIR_SPLIT.split(_unwrap(blob))
    n_pairs = len(parts) // 2
    if n_pairs == 0:
        return None
    keys = parts[0 : 2 * n_pairs : 2]
    if not include_values:
        return keys
    values = parts[1 : 2 * n_pairs : 2]
    return list(zip(keys, values))


def encode(pairs: Pairs) -> Optional[str]:
    """Build a canonical blob. Keys and values are written as-is, without escaping."""
    items = pairs.items() if isinstance(pairs, Mapping) else pairs
    encoded = ",".join(f'"{key}"=>"{value}"' for key, value in items)
    return encoded or None


def has_key_mask(blobs, key: str) -> np.ndarray:
    """Boolean array, one entry per blob, flagging blobs that contain ``key``."""
    series = _as_series(blobs)
    return series.str.contains(_key_token(key), regex=False, na=False).to_numpy(dtype=bool)


def extract_values(blobs, key: str, positions: Optional[Sequence[int]] = None) -> np.ndarray:
    """Extract the value of ``key`` from the blobs at ``positions`` (all blobs if None).

    The result is aligned with ``positions``; blobs where no value could be
    extracted yield None.
    """
    series = _as_series(blobs)
    if positions is not None:
        series = series.iloc[np.asarray(positions, dtype=np.intp)]
    if series.empty:
        return np.empty(0, dtype=object)
    extracted = series.str.extract(_value_pattern(key).pattern, expand=False).to_numpy(dtype=object)
    return np.where(pd.isna(extracted), None, extracted)


def lookup(blobs, key: str, keep_missing: bool = False) -> Tuple[np.ndarray, np.ndarray]:
    """Return the positions of blobs holding ``key`` and the value found in each.

    Values are only extracted for blobs that passed the key scan. Blobs where
    the key is present but no value can be extracted are left out, unless
    ``keep_missing`` is set, in which case they are returned with a None value.
    """
    series = _as_series(blobs)
    positions = np.flatnonzero(has_key_mask(series, key))
    if not len(positions):
        return positions, np.empty(0, dtype=object)
    values = extract_values(series, key, positions)
    found = ~pd.isna(values)
    if not found.all():
        LOGGER.debug(
            "Key %r present in %s blob(s) without an extractable value", key, int((~found).sum())
        )
    if keep_missing:
        return positions, values
    return positions[found], values[found]


def decode_column(blobs, include_values: bool = False) -> List[Optional[List]]:
    """Apply :func:`decode` to every blob in a column."""
    return [decode(blob, include_values) for blob in _as_series(blobs)]


__all__ = [
    "OTHER_TAGS_COLUMN",
    "decode",
    "decode_column",
    "encode",
    "extract_value",
    "extract_values",
    "has_key",
    "has_key_mask",
    "lookup",
]
