"""Ordered registration and URL resolution for site adapters."""

from __future__ import annotations

import inspect
from collections.abc import Iterable

from readstory.adapters.base_site_adapter import BaseSiteAdapter
from readstory.utils.errors import NoStrategyFound


class AdapterRegistry:
    """Holds adapter instances in registration order.

    Resolution walks the adapters in that order and returns the first one whose
    ``supports(url)`` accepts the URL, so earlier registrations win when two
    adapters claim the same URL.
    """

    def __init__(self, adapters: Iterable[BaseSiteAdapter] = ()) -> None:
        self._adapters: dict[str, BaseSiteAdapter] = {}
        for adapter in adapters:
            self.register(adapter)

    def register(self, adapter: BaseSiteAdapter) -> None:
        """Append ``adapter`` to the resolution order."""

        if inspect.isclass(adapter) or not isinstance(adapter, BaseSiteAdapter):
            raise TypeError("Adapter must be an instance of BaseSiteAdapter")

        site_key = adapter.get_site_key()
        existing = self._adapters.get(site_key)
        if existing is not None:
            if existing is adapter:
                return
            raise ValueError(
                f"Duplicate adapter registration for site '{site_key}': "
                f"{type(existing).__name__} already registered"
            )
        self._adapters[site_key] = adapter

    def available_site_keys(self) -> list[str]:
        return list(self._adapters)

    def get(self, site_key: str) -> BaseSiteAdapter:
        try:
            return self._adapters[site_key]
        except KeyError as exc:
            raise ValueError(f"Unknown site: {site_key}") from exc

    def resolve(self, url: str) -> BaseSiteAdapter:
        for adapter in self._adapters.values():
            if adapter.supports(url):
                return adapter
        raise NoStrategyFound(url)


def build_default_registry() -> AdapterRegistry:
    """Registry with every built-in adapter, truyenfull first."""

    from readstory.adapters.metruyencv_adapter import MeTruyenCVAdapter
    from readstory.adapters.truyenfull_adapter import TruyenFullAdapter

    return AdapterRegistry([TruyenFullAdapter(), MeTruyenCVAdapter()])


__all__ = ["AdapterRegistry", "build_default_registry"]
