"""
Config package for scrollstory.

Responsible for:
- config models (GlobalConfig, DatasetConfig, etc.)
- config I/O helpers (load_global_config)
"""

from .model import GlobalConfig, DatasetConfig, HistogramDomain
from .loader import load_global_config
