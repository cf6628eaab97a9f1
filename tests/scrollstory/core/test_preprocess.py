from pathlib import Path

import pandas as pd
import pytest

from scrollstory.config.model import DatasetConfig, DatasetFields, HistogramDomain
from scrollstory.core.dataset import RawDataset
from scrollstory.core.preprocess import (
    build_histogram,
    coerce_numeric,
    get_filler_words,
    get_words,
    group_by_key,
    preprocess,
    preprocess_all,
)


def _make_cfg(kind: str = "words", **raw) -> DatasetConfig:
    return DatasetConfig(
        raw={"name": raw.pop("name", "test"), "kind": kind, "source": "unused.tsv", **raw},
        source_path=Path("/tmp/config/datasets/test.json"),
        index=0,
    )


def _make_rows(*triples):
    return [{"word": w, "filler": f, "time": t} for w, f, t in triples]


def test_coerce_numeric_turns_garbage_into_zero():
    out = coerce_numeric(pd.Series(["12", "3.5", "abc", None, "", 7]))
    assert out.tolist() == [12.0, 3.5, 0.0, 0.0, 0.0, 7.0]


def test_get_words_types_and_minutes():
    rows = _make_rows(("um", "1", "61"), ("the", "0", "x"), ("like", "yes", "600"))
    words = get_words(rows, DatasetFields())

    assert words["word"].tolist() == ["um", "the", "like"]
    assert words["filler"].tolist() == [True, False, True]
    assert words["time"].tolist() == [61.0, 0.0, 600.0]
    assert words["minute"].tolist() == [1, 0, 10]


def test_get_words_does_not_mutate_input():
    rows = _make_rows(("um", "1", "61"))
    snapshot = [dict(r) for r in rows]

    get_words(rows, DatasetFields())

    assert rows == snapshot


@pytest.mark.parametrize("flag", ["1", 1, "true", "TRUE", "yes", True])
def test_truthy_flags(flag):
    words = get_words(_make_rows(("um", flag, "0")), DatasetFields())
    assert words["filler"].tolist() == [True]


@pytest.mark.parametrize("flag", ["0", 0, "", "no", None, "2", False])
def test_falsy_flags(flag):
    words = get_words(_make_rows(("um", flag, "0")), DatasetFields())
    assert words["filler"].tolist() == [False]


def test_group_by_key_descending_with_stable_ties():
    words = get_words(
        _make_rows(
            ("like", "1", "0"),
            ("um", "1", "0"),
            ("so", "1", "0"),
            ("um", "1", "0"),
            ("uh", "1", "0"),
        ),
        DatasetFields(),
    )
    series = group_by_key(words, "word", "counts")

    assert series.keys() == ["um", "like", "so", "uh"]
    assert series.values() == [2.0, 1.0, 1.0, 1.0]


def test_group_by_key_on_empty_frame():
    series = group_by_key(pd.DataFrame({"word": []}), "word", "counts")
    assert len(series) == 0


def test_histogram_bins_cover_domain_and_drop_out_of_range():
    domain = HistogramDomain(lower=0, upper=30, width=4)
    values = pd.Series([-1, 0, 3.9, 4, 29.9, 30, 45])

    bins = build_histogram(values, domain)

    # ceil(30 / 4) == 8, last bin clipped to the domain
    assert len(bins) == 8
    assert bins[0].lower_bound == 0
    assert bins[-1].upper_bound == 30
    for left, right in zip(bins, bins[1:]):
        assert left.upper_bound == right.lower_bound
    assert [b.length for b in bins] == [2, 1, 0, 0, 0, 0, 0, 1]
    assert sum(b.length for b in bins) == 4


def test_histogram_of_nothing_is_all_zero_bins():
    bins = build_histogram(pd.Series([], dtype=float), HistogramDomain(lower=0, upper=30, width=2))
    assert len(bins) == 15
    assert all(b.length == 0 for b in bins)


def test_words_end_to_end():
    raw = RawDataset(
        name="words",
        rows=_make_rows(("um", "1", "12"), ("like", "1", "600"), ("the", "0", "30")),
    )

    result = preprocess(raw, _make_cfg("words"))

    counts = result.get_series("filler_counts")
    assert [(p.key, p.value) for p in counts] == [("um", 1.0), ("like", 1.0)]

    bins = result.histograms["filler_minutes"]
    assert len(bins) == 15
    lengths = {b.lower_bound: b.length for b in bins}
    # minute 0 lands in [0, 2), minute 10 in [10, 12)
    assert lengths[0] == 1
    assert lengths[10] == 1
    assert sum(lengths.values()) == 2


def test_words_documented_scenario():
    raw = RawDataset(
        name="words",
        rows=[
            {"word": "um", "filler": "1", "time": 45},
            {"word": "like", "filler": "1", "time": 610},
            {"word": "the", "filler": "0", "time": 10},
        ],
    )

    result = preprocess(raw, _make_cfg("words"))

    counts = result.get_series("filler_counts")
    assert [(p.key, p.value) for p in counts] == [("um", 1.0), ("like", 1.0)]
    lengths = {b.lower_bound: b.length for b in result.histograms["filler_minutes"]}
    assert lengths.pop(0) == 1
    assert lengths.pop(10) == 1
    assert set(lengths.values()) == {0}


def test_filler_subset_only():
    words = get_words(_make_rows(("um", "1", "0"), ("the", "0", "0")), DatasetFields())
    assert get_filler_words(words)["word"].tolist() == ["um"]


def test_histogram_exposed_as_series():
    raw = RawDataset(name="words", rows=_make_rows(("um", "1", "0")))
    series = preprocess(raw, _make_cfg("words")).get_series("filler_minutes")

    assert series.keys()[:3] == ["0", "2", "4"]
    assert series.values()[0] == 1.0


def test_unknown_series_label_raises_key_error():
    result = preprocess(RawDataset(name="words"), _make_cfg("words"))
    with pytest.raises(KeyError):
        result.get_series("nope")


def test_frequency_fills_the_year_band():
    raw = RawDataset(
        name="speaker",
        rows=[
            {"year": "1990", "frequency": "3"},
            {"year": "1990", "frequency": "2"},
            {"year": "2019", "frequency": "1"},
            {"year": "1950", "frequency": "9"},
            {"year": "oops", "frequency": "4"},
        ],
    )

    series = preprocess(raw, _make_cfg("frequency")).get_series("frequency")

    assert len(series) == 36
    assert series.keys()[0] == "1984"
    assert series.keys()[-1] == "2019"
    values = dict(zip(series.keys(), series.values()))
    assert values["1990"] == 5.0
    assert values["2019"] == 1.0
    assert sum(series.values()) == 6.0


def test_frequency_keys_stay_unique_on_large_domains():
    raw = RawDataset(name="big", rows=[{"year": "1000001", "frequency": "3"}])
    cfg = _make_cfg("frequency", domain={"lower": 1000000, "upper": 1000010, "width": 1})

    series = preprocess(raw, cfg).get_series("frequency")

    assert series.keys() == [str(1000000 + k) for k in range(10)]
    assert dict(zip(series.keys(), series.values()))["1000001"] == 3.0


def test_histogram_keys_stay_unique_on_fine_widths():
    bins = build_histogram(pd.Series([0.05]), HistogramDomain(lower=0, upper=1, width=0.1))
    keys = [b.key for b in bins]

    assert len(set(keys)) == len(bins) == 10
    assert keys[:4] == ["0", "0.1", "0.2", "0.3"]


def test_pageviews_keep_order_and_sum_duplicates():
    raw = RawDataset(
        name="wiki",
        rows=[
            {"date": "2023010100", "views": 10},
            {"date": "2023020100", "views": "5"},
            {"date": "2023010100", "views": 1},
        ],
    )

    series = preprocess(raw, _make_cfg("pageviews", article="X")).get_series("pageviews")

    assert series.keys() == ["2023010100", "2023020100"]
    assert series.values() == [11.0, 5.0]


def test_empty_dataset_gives_empty_series():
    result = preprocess(RawDataset(name="words"), _make_cfg("words"))
    assert len(result.get_series("filler_counts")) == 0
    assert all(b.length == 0 for b in result.histograms["filler_minutes"])


def test_preprocess_is_pure():
    raw = RawDataset(name="words", rows=_make_rows(("um", "1", "12"), ("uh", "1", "100")))
    cfg = _make_cfg("words")

    first = preprocess(raw, cfg)
    second = preprocess(raw, cfg)

    assert first == second


def test_unknown_kind_raises():
    with pytest.raises(ValueError, match="Unknown dataset kind"):
        preprocess(RawDataset(name="x"), _make_cfg("nonsense"))


def test_preprocess_all_handles_missing_raw():
    cfgs = {"a": _make_cfg("words", name="a")}
    result = preprocess_all({}, cfgs)
    assert set(result) == {"a"}
    assert len(result["a"].get_series("filler_counts")) == 0
