from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

from scrollstory.config.model import (
    DATASET_KINDS,
    ChartConfig,
    DatasetConfig,
    GlobalConfig,
    Margin,
    ScrollConfig,
    SectionConfig,
)
from scrollstory.core.exceptions import ConfigError

logger = logging.getLogger(__name__)


def load_global_config(root: Path) -> GlobalConfig:
    """
    Load configuration from a directory using the multi-file layout.

    Expected structure:

        root/
            global.json
            datasets/
                words.json
                teddy.json
                ...

    - ui_title: page title, defaults to 'Scroll Story'
    - chart / scroll: tuning blocks, every key optional
    - sections: ordered list of story steps
    - datasets: one DatasetConfig per file in 'datasets/'

    :param root: Directory containing 'global.json' and optionally 'datasets/'.
    :return: A GlobalConfig instance.
    :raises FileNotFoundError: if global.json does not exist.
    :raises ConfigError: if any file is malformed or dataset names collide.
    """
    root = Path(root)
    logger.info(
        "Loading global config",
        extra={"config_root": str(root)},
    )

    global_path = root / "global.json"
    if not global_path.is_file():
        raise FileNotFoundError(f"File not found at {global_path}")

    raw_global = _read_json(global_path)

    datasets = _load_dataset_configs(root / "datasets")

    try:
        chart = _parse_chart(raw_global.get("chart", {}))
        scroll = ScrollConfig(**raw_global.get("scroll", {}))
        sections = [SectionConfig(**raw) for raw in raw_global.get("sections", [])]
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid global.json at {global_path}: {e}") from e

    if not 0 < scroll.threshold <= 1:
        raise ConfigError(f"scroll.threshold must be in (0, 1], got {scroll.threshold}")

    known = {ds.name for ds in datasets}
    for idx, section in enumerate(sections):
        if section.dataset is not None and section.dataset not in known:
            raise ConfigError(
                f"Section {idx} references unknown dataset '{section.dataset}'"
            )

    logger.info(
        "Global config loaded",
        extra={
            "config_root": str(root),
            "n_sections": len(sections),
            "dataset_names": sorted(known),
        },
    )

    return GlobalConfig(
        ui_title=raw_global.get("ui_title", "Scroll Story"),
        chart=chart,
        scroll=scroll,
        sections=sections,
        datasets=datasets,
    )


def _load_dataset_configs(datasets_dir: Path) -> List[DatasetConfig]:
    datasets: List[DatasetConfig] = []
    if not datasets_dir.is_dir():
        logger.warning(f"Datasets directory not found at: {datasets_dir}")
        return datasets

    logger.info(f"Scanning for dataset configurations in: {datasets_dir}")
    seen: Dict[str, Path] = {}

    for idx, config_file in enumerate(sorted(datasets_dir.glob("*.json"))):
        cfg = DatasetConfig.from_raw(_read_json(config_file), source_path=config_file, index=idx)

        if cfg.kind not in DATASET_KINDS:
            raise ConfigError(f"{config_file.name}: unknown dataset kind '{cfg.kind}'")
        if cfg.name in seen:
            raise ConfigError(
                f"Duplicate dataset name '{cfg.name}' in {config_file.name} and {seen[cfg.name].name}"
            )
        if cfg.kind == "pageviews" and not cfg.article:
            raise ConfigError(f"{config_file.name}: pageviews datasets need an 'article'")
        if cfg.kind != "pageviews" and not cfg.source:
            raise ConfigError(f"{config_file.name}: missing 'source'")

        try:
            cfg.domain
        except (TypeError, ValueError) as e:
            raise ConfigError(f"{config_file.name}: invalid domain: {e}") from e

        seen[cfg.name] = config_file
        datasets.append(cfg)

    if not datasets:
        logger.warning(f"No .json files found in {datasets_dir}")
    return datasets


def _parse_chart(raw: Dict[str, Any]) -> ChartConfig:
    raw = dict(raw)
    if "margin" in raw:
        raw["margin"] = Margin(**raw["margin"])
    if "colors" in raw:
        raw["colors"] = tuple(raw["colors"])
    return ChartConfig(**raw)


def _read_json(path: Path) -> Dict[str, Any]:
    try:
        with path.open() as f:
            raw = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Failed to parse {path.name}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"{path.name} must contain a JSON object")
    return raw
