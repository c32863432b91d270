"""Check definition and distribution list loading."""

from check_engine.loader.check_loader import (
    CheckLoadError,
    load_check_set,
    parse_check_set,
)
from check_engine.loader.distribution_loader import (
    DistributionLoadError,
    load_distribution_list,
    parse_distribution_list,
)

__all__ = [
    "CheckLoadError",
    "DistributionLoadError",
    "load_check_set",
    "load_distribution_list",
    "parse_check_set",
    "parse_distribution_list",
]
