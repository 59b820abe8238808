"""Public adapter helpers."""

from readstory.adapters.base_site_adapter import BaseSiteAdapter, ChapterPayload, ChapterTask
from readstory.adapters.metruyencv_adapter import MeTruyenCVAdapter
from readstory.adapters.registry import AdapterRegistry, build_default_registry
from readstory.adapters.truyenfull_adapter import TruyenFullAdapter

__all__ = [
    "AdapterRegistry",
    "BaseSiteAdapter",
    "ChapterPayload",
    "ChapterTask",
    "MeTruyenCVAdapter",
    "TruyenFullAdapter",
    "build_default_registry",
]
