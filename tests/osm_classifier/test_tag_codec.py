from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from osm_classifier import tag_codec

pytestmark = pytest.mark.smoke

BLOB = '"a"=>"1","b"=>"2"'


def test_extract_value_and_missing_key() -> None:
    assert tag_codec.extract_value(BLOB, "b") == "2"
    assert tag_codec.has_key(BLOB, "a")
    assert not tag_codec.has_key(BLOB, "c")
    assert tag_codec.extract_value(BLOB, "c") is None


def test_missing_blob_has_no_keys() -> None:
    assert not tag_codec.has_key(None, "a")
    assert not tag_codec.has_key(float("nan"), "a")
    assert tag_codec.extract_value(None, "a") is None


def test_key_must_match_exactly() -> None:
    blob = '"name:en"=>"Harbour","name"=>"Bandar"'
    assert tag_codec.extract_value(blob, "name") == "Bandar"
    assert tag_codec.extract_value(blob, "name:en") == "Harbour"
    assert tag_codec.extract_value(blob, "en") is None


def test_empty_value_is_extracted() -> None:
    assert tag_codec.extract_value('"a"=>"","b"=>"2"', "a") == ""


def test_unterminated_value_yields_none() -> None:
    blob = '"a"=>"open'
    assert tag_codec.has_key(blob, "a")
    assert tag_codec.extract_value(blob, "a") is None


def test_decode_keys_and_pairs() -> None:
    assert tag_codec.decode(BLOB) == ["a", "b"]
    assert tag_codec.decode(BLOB, include_values=True) == [("a", "1"), ("b", "2")]


def test_decode_handles_wrapped_blobs() -> None:
    assert tag_codec.decode("'" + BLOB + "'", include_values=True) == [("a", "1"), ("b", "2")]
    assert tag_codec.decode('"' + BLOB + '"', include_values=True) == [("a", "1"), ("b", "2")]


def test_decode_returns_none_without_pairs() -> None:
    assert tag_codec.decode(None) is None
    assert tag_codec.decode("") is None
    assert tag_codec.decode("garbage", include_values=True) is None


def test_encoded_pairs_can_be_read_back() -> None:
    pairs = [("amenity", "cafe"), ("cuisine", "coffee_shop"), ("wifi", "yes")]
    blob = tag_codec.encode(pairs)
    assert blob == '"amenity"=>"cafe","cuisine"=>"coffee_shop","wifi"=>"yes"'
    assert tag_codec.decode(blob, include_values=True) == pairs
    assert all(tag_codec.extract_value(blob, key) == value for key, value in pairs)
    assert tag_codec.encode({}) is None


def test_batch_lookup_is_positional() -> None:
    blobs = pd.Series([BLOB, None, '"c"=>"3"', '"b"=>"9"'], index=[10, 20, 30, 40])
    mask = tag_codec.has_key_mask(blobs, "b")
    assert mask.tolist() == [True, False, False, True]

    positions, values = tag_codec.lookup(blobs, "b")
    assert positions.tolist() == [0, 3]
    assert values.tolist() == ["2", "9"]


def test_extract_values_restricted_to_positions() -> None:
    blobs = [BLOB, '"b"=>"x"', None]
    values = tag_codec.extract_values(blobs, "b", positions=[1])
    assert values.tolist() == ["x"]
    everything = tag_codec.extract_values(blobs, "b")
    assert everything.tolist() == ["2", "x", None]


def test_lookup_skips_unextractable_values() -> None:
    positions, values = tag_codec.lookup(['"a"=>"broken', '"a"=>"ok"'], "a")
    assert positions.tolist() == [1]
    assert values.tolist() == ["ok"]


def test_lookup_on_column_without_blobs() -> None:
    positions, values = tag_codec.lookup(pd.Series([np.nan, np.nan]), "a")
    assert len(positions) == 0
    assert len(values) == 0


def test_decode_column() -> None:
    assert tag_codec.decode_column([BLOB, None]) == [["a", "b"], None]


def test_lookup_can_keep_unreadable_values() -> None:
    positions, values = tag_codec.lookup(['"a"=>"broken', '"a"=>"ok"', None], "a", keep_missing=True)
    assert positions.tolist() == [0, 1]
    assert values.tolist() == [None, "ok"]
