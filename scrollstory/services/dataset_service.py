from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Iterator, Mapping, Optional

import pandas as pd

from scrollstory.config.model import DatasetConfig
from scrollstory.core.dataset import PreprocessedDataset, RawDataset
from scrollstory.core.preprocess import preprocess
from scrollstory.services.pageviews import DEFAULT_END, DEFAULT_START, fetch_pageviews

logger = logging.getLogger(__name__)

Fetcher = Callable[[DatasetConfig], RawDataset]


def fetch_dataset(cfg: DatasetConfig) -> RawDataset:
    """
    Fetch raw rows for one dataset. Never raises: a failed fetch comes back
    as an empty RawDataset so the story renders a neutral chart instead.
    """
    if cfg.kind == "pageviews":
        return fetch_pageviews(
            cfg.name,
            cfg.article,
            start=cfg.raw.get("start", DEFAULT_START),
            end=cfg.raw.get("end", DEFAULT_END),
            with_image=bool(cfg.raw.get("show_image", False)),
        )

    source = cfg.source
    sep = cfg.raw.get("sep") or ("," if str(source).endswith(".csv") else "\t")
    try:
        df = pd.read_csv(source, sep=sep, dtype=str, keep_default_na=False)
    except Exception as e:
        # pandas surfaces missing files, HTTP errors and parse errors as different types
        logger.warning(
            "Dataset fetch failed",
            extra={"dataset": cfg.name, "source": str(source), "error": str(e)},
        )
        return RawDataset(name=cfg.name)

    logger.info(
        "Dataset fetched",
        extra={"dataset": cfg.name, "source": str(source), "n_rows": len(df)},
    )
    return RawDataset(name=cfg.name, rows=df.to_dict(orient="records"))


class DatasetManager(Mapping[str, PreprocessedDataset]):
    """
    Loads every configured dataset and serves the preprocessed results.

    load_all() is the single data-ready point: all fetches run concurrently
    and are all awaited (or degraded to empty) before it returns, so nothing
    that depends on a dataset can run against half-loaded data.
    Implements Mapping so story code can treat it as a dict.
    """

    def __init__(
            self,
            cfg_by_name: Dict[str, DatasetConfig],
            fetcher: Fetcher = fetch_dataset,
            max_workers: int = 8,
    ):
        self._cfg_by_name = cfg_by_name
        self._fetcher = fetcher
        self._max_workers = max_workers
        self._raw: Dict[str, RawDataset] = {}
        self._loaded: Dict[str, PreprocessedDataset] = {}
        self._ready = False

    def load_all(self) -> Dict[str, PreprocessedDataset]:
        names = list(self._cfg_by_name)
        if names:
            with ThreadPoolExecutor(max_workers=min(self._max_workers, len(names))) as pool:
                raws = list(pool.map(self._fetch_one, names))
        else:
            raws = []

        self._raw = dict(zip(names, raws))
        self._loaded = {
            name: preprocess(self._raw[name], self._cfg_by_name[name]) for name in names
        }
        self._ready = True

        logger.info(
            "Datasets ready",
            extra={
                "dataset_names": names,
                "empty": [n for n in names if self._raw[n].is_empty],
            },
        )
        return dict(self._loaded)

    def _fetch_one(self, name: str) -> RawDataset:
        cfg = self._cfg_by_name[name]
        try:
            return self._fetcher(cfg)
        except Exception:
            logger.exception("Unexpected error while fetching dataset", extra={"dataset": name})
            return RawDataset(name=name)

    def reload(self) -> Dict[str, PreprocessedDataset]:
        self._ready = False
        self._raw.clear()
        self._loaded.clear()
        return self.load_all()

    @property
    def is_ready(self) -> bool:
        return self._ready

    def raw(self, name: str) -> Optional[RawDataset]:
        return self._raw.get(name)

    def __getitem__(self, name: str) -> PreprocessedDataset:
        if not self._ready:
            raise RuntimeError("Datasets requested before load_all() completed")
        if name not in self._loaded:
            raise KeyError(f"Unknown dataset '{name}'")
        return self._loaded[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._cfg_by_name)

    def __len__(self) -> int:
        return len(self._cfg_by_name)
