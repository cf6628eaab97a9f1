import threading
from pathlib import Path

import pytest
import requests

from scrollstory.config.model import DatasetConfig
from scrollstory.core.dataset import RawDataset
from scrollstory.services import pageviews
from scrollstory.services.dataset_service import DatasetManager, fetch_dataset
from scrollstory.services.pageviews import encode_article, fetch_pageviews


def _make_cfg(tmp_path: Path, name="words", kind="words", **raw) -> DatasetConfig:
    datasets_dir = tmp_path / "datasets"
    datasets_dir.mkdir(exist_ok=True)
    return DatasetConfig(
        raw={"name": name, "kind": kind, **raw},
        source_path=datasets_dir / f"{name}.json",
        index=0,
    )


class _FakeResponse:
    def __init__(self, payload=None, status=200):
        self._payload = payload
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


# -----------------------------------------------------------------------------
# fetch_dataset
# -----------------------------------------------------------------------------
def test_fetch_local_tsv(tmp_path):
    (tmp_path / "words.tsv").write_text("word\tfiller\ttime\num\t1\t12\nthe\t0\t\n")
    cfg = _make_cfg(tmp_path, source="words.tsv")

    raw = fetch_dataset(cfg)

    assert raw.name == "words"
    assert list(raw.rows) == [
        {"word": "um", "filler": "1", "time": "12"},
        {"word": "the", "filler": "0", "time": ""},
    ]


def test_fetch_csv_by_extension(tmp_path):
    (tmp_path / "freq.csv").write_text("year,frequency\n1990,3\n")
    cfg = _make_cfg(tmp_path, name="freq", kind="frequency", source="freq.csv")

    raw = fetch_dataset(cfg)

    assert list(raw.rows) == [{"year": "1990", "frequency": "3"}]


def test_fetch_missing_file_degrades_to_empty(tmp_path, caplog):
    cfg = _make_cfg(tmp_path, source="nope.tsv")

    raw = fetch_dataset(cfg)

    assert raw.is_empty
    assert "Dataset fetch failed" in caplog.text


def test_fetch_pageviews_kind_routes_to_wikimedia(tmp_path, monkeypatch):
    seen = {}

    def fake_fetch(name, article, start, end, with_image):
        seen.update(name=name, article=article, start=start, end=end, with_image=with_image)
        return RawDataset(name=name, rows=[{"date": "2023010100", "views": 1}])

    monkeypatch.setattr("scrollstory.services.dataset_service.fetch_pageviews", fake_fetch)
    cfg = _make_cfg(tmp_path, name="wiki", kind="pageviews", article="Jeopardy!", start="20220101")

    raw = fetch_dataset(cfg)

    assert len(raw.rows) == 1
    assert seen == {
        "name": "wiki",
        "article": "Jeopardy!",
        "start": "20220101",
        "end": pageviews.DEFAULT_END,
        "with_image": False,
    }


# -----------------------------------------------------------------------------
# Wikimedia supplier
# -----------------------------------------------------------------------------
def test_encode_article():
    assert encode_article("Theodore Roosevelt") == "Theodore_Roosevelt"
    assert encode_article("AC/DC") == "AC%2FDC"


def test_fetch_pageviews_parses_items(monkeypatch):
    calls = []

    def fake_get(url, **kwargs):
        calls.append(url)
        if "pageviews" in url:
            return _FakeResponse({"items": [{"timestamp": "2023010100", "views": 42}]})
        return _FakeResponse({"query": {"pages": {"1": {"thumbnail": {"source": "https://img/x.png"}}}}})

    monkeypatch.setattr(pageviews.requests, "get", fake_get)

    raw = fetch_pageviews("wiki", "Jeopardy!", with_image=True)

    assert list(raw.rows) == [{"date": "2023010100", "views": 42}]
    assert raw.meta["image_url"] == "https://img/x.png"
    assert "Jeopardy%21" in calls[0]
    assert "/monthly/20230101/20231231" in calls[0]


@pytest.mark.parametrize(
    "response",
    [
        _FakeResponse(status=404),
        _FakeResponse(payload=None),
        _FakeResponse(payload={"unexpected": []}),
    ],
    ids=["http-error", "not-json", "no-items"],
)
def test_fetch_pageviews_failures_are_empty(monkeypatch, response):
    monkeypatch.setattr(pageviews.requests, "get", lambda url, **kwargs: response)

    raw = fetch_pageviews("wiki", "Jeopardy!")

    assert raw.is_empty
    assert raw.name == "wiki"


def test_fetch_pageviews_network_error_is_empty(monkeypatch):
    def boom(url, **kwargs):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(pageviews.requests, "get", boom)

    assert fetch_pageviews("wiki", "Jeopardy!").is_empty


# -----------------------------------------------------------------------------
# DatasetManager
# -----------------------------------------------------------------------------
def test_manager_loads_all_concurrently(tmp_path):
    cfgs = {
        "a": _make_cfg(tmp_path, name="a", source="a.tsv"),
        "b": _make_cfg(tmp_path, name="b", source="b.tsv"),
    }
    barrier = threading.Barrier(2, timeout=5)

    def fetcher(cfg):
        # both fetches must be in flight at once to pass the barrier
        barrier.wait()
        return RawDataset(name=cfg.name, rows=[{"word": "um", "filler": "1", "time": "0"}])

    manager = DatasetManager(cfgs, fetcher=fetcher)
    assert not manager.is_ready
    with pytest.raises(RuntimeError):
        manager["a"]

    loaded = manager.load_all()

    assert manager.is_ready
    assert sorted(loaded) == ["a", "b"]
    assert manager["a"].get_series("filler_counts").keys() == ["um"]
    assert manager.raw("b").rows[0]["word"] == "um"
    assert list(manager) == ["a", "b"]
    assert len(manager) == 2


def test_manager_fetcher_crash_is_empty(tmp_path, caplog):
    cfgs = {"a": _make_cfg(tmp_path, name="a", source="a.tsv")}

    def fetcher(cfg):
        raise RuntimeError("boom")

    manager = DatasetManager(cfgs, fetcher=fetcher)
    manager.load_all()

    assert manager.raw("a").is_empty
    assert len(manager["a"].get_series("filler_counts")) == 0
    assert "Unexpected error while fetching dataset" in caplog.text


def test_manager_unknown_name(tmp_path):
    manager = DatasetManager({}, fetcher=lambda cfg: RawDataset(name=cfg.name))
    manager.load_all()
    with pytest.raises(KeyError):
        manager["ghost"]


def test_manager_reload_refetches(tmp_path):
    cfgs = {"a": _make_cfg(tmp_path, name="a", source="a.tsv")}
    rows = [[{"word": "um", "filler": "1", "time": "0"}], [{"word": "uh", "filler": "1", "time": "0"}]]

    manager = DatasetManager(cfgs, fetcher=lambda cfg: RawDataset(name=cfg.name, rows=rows.pop(0)))
    manager.load_all()
    assert manager["a"].get_series("filler_counts").keys() == ["um"]

    manager.reload()
    assert manager["a"].get_series("filler_counts").keys() == ["uh"]
