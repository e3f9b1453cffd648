"""
Matsedel Upstream Layer
=======================

This package talks to the upstream menu services and turns their data into
the canonical Menu/Day/Meal model.

Pipeline Stages:
1. Registry - Providers are built from providers.yaml at startup
2. Fetch - Requests are retried while the upstream answers with transient errors
3. Parse - Adapters extract menus and days from HTML or JSON
4. Normalize - Titles and meals are trimmed and meals deduplicated
"""

from matsedel.upstream.registry import (
    GlobalConfig,
    ProviderConfig,
    ProviderRegistry,
    RegisteredProvider,
    RegistryConfig,
    get_default_registry,
    reset_default_registry,
)
from matsedel.upstream.fetcher import (
    Fetcher,
    FetchOptions,
    gather_ordered,
)
from matsedel.upstream.normalizer import (
    polish_meal_value,
    polish_meals,
    trim_title,
)
from matsedel.upstream.time_range import (
    SkolmatenTimeRange,
    skolmaten_time_ranges,
)

__all__ = [
    # Registry
    "GlobalConfig",
    "ProviderConfig",
    "ProviderRegistry",
    "RegisteredProvider",
    "RegistryConfig",
    "get_default_registry",
    "reset_default_registry",
    # Fetcher
    "Fetcher",
    "FetchOptions",
    "gather_ordered",
    # Normalizer
    "polish_meal_value",
    "polish_meals",
    "trim_title",
    # Time ranges
    "SkolmatenTimeRange",
    "skolmaten_time_ranges",
]
