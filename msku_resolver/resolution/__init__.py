"""
SKU to MSKU resolution module.

Exact-match index plus derived fuzzy patterns for reconciling
marketplace-specific SKUs into master SKUs.
"""

from msku_resolver.resolution.patterns import (
    Pattern,
    PatternKind,
    build_patterns,
    longest_common_prefix,
    longest_common_suffix,
)
from msku_resolver.resolution.resolution_engine import (
    BulkReport,
    Mapping,
    MatchResult,
    SkuResolutionEngine,
    mapping_key,
)

__all__ = [
    "SkuResolutionEngine",
    "Mapping",
    "MatchResult",
    "BulkReport",
    "Pattern",
    "PatternKind",
    "build_patterns",
    "longest_common_prefix",
    "longest_common_suffix",
    "mapping_key",
]
