"""
Pattern derivation for fuzzy SKU resolution.

Patterns are plain values (kind + term + confidence) derived from groups of
mappings that share an MSKU. Matching is done through a dispatch table keyed
by pattern kind, so patterns can be inspected, compared and serialized.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, List, Sequence

logger = logging.getLogger(__name__)


PRODUCT_NAME_CONFIDENCE = 0.7
AFFIX_CONFIDENCE = 0.8
VARIANT_CONFIDENCE = 0.6

# Shortest common prefix/suffix worth turning into a pattern
MIN_AFFIX_LENGTH = 3

COLOR_TERMS = ("red", "blue", "green", "black", "white", "purple", "yellow", "orange")
SIZE_TERMS = ("small", "medium", "large", "xl", "xxl", "mini", "giant")

# MSKUs shaped like APPLE-001 carry a product word
PRODUCT_MSKU_RE = re.compile(r"([A-Z]+)-[0-9]+")


class PatternKind(str, Enum):
    """Kinds of derived matching rules."""

    PRODUCT_NAME = "product-name"
    PREFIX = "prefix"
    SUFFIX = "suffix"
    COLOR_VARIANT = "color-variant"
    SIZE_VARIANT = "size-variant"


@dataclass(frozen=True)
class Pattern:
    """
    A derived matching rule pointing at one MSKU.

    Attributes:
        msku: Master SKU the rule resolves to.
        kind: Which heuristic produced the rule.
        term: The string the rule tests for (product word, prefix, suffix,
            or vocabulary term).
        confidence: Score reported when the rule wins, in (0, 1].
    """

    msku: str
    kind: PatternKind
    term: str
    confidence: float

    def matches(self, sku: str) -> bool:
        return pattern_matches(self, sku)

    def to_dict(self) -> Dict[str, object]:
        return {
            "msku": self.msku,
            "kind": self.kind.value,
            "term": self.term,
            "confidence": self.confidence,
        }


def _contains_product_name(term: str, sku: str) -> bool:
    return term in sku.upper()


def _starts_with(term: str, sku: str) -> bool:
    return sku.lower().startswith(term)


def _ends_with(term: str, sku: str) -> bool:
    return sku.lower().endswith(term)


def _contains_term(term: str, sku: str) -> bool:
    return term in sku.lower()


PATTERN_TESTS: Dict[PatternKind, Callable[[str, str], bool]] = {
    PatternKind.PRODUCT_NAME: _contains_product_name,
    PatternKind.PREFIX: _starts_with,
    PatternKind.SUFFIX: _ends_with,
    PatternKind.COLOR_VARIANT: _contains_term,
    PatternKind.SIZE_VARIANT: _contains_term,
}


def pattern_matches(pattern: Pattern, sku: str) -> bool:
    """Check whether a SKU satisfies a pattern."""
    return PATTERN_TESTS[pattern.kind](pattern.term, sku)


def longest_common_prefix(strings: Sequence[str]) -> str:
    """
    Find the longest common prefix among a list of strings.

    Args:
        strings: Strings to compare.

    Returns:
        str: Common prefix, or empty string if there is none.
    """
    if not strings:
        return ""

    prefix = strings[0]
    for value in strings[1:]:
        while not value.startswith(prefix):
            prefix = prefix[:-1]
            if not prefix:
                return ""

    return prefix


def longest_common_suffix(strings: Sequence[str]) -> str:
    """Find the longest common suffix by reversing, taking the prefix, reversing back."""
    if not strings:
        return ""

    reversed_strings = [value[::-1] for value in strings]
    return longest_common_prefix(reversed_strings)[::-1]


def _has_variant_term(skus: Iterable[str]) -> bool:
    for sku in skus:
        lower_sku = sku.lower()
        if any(term in lower_sku for term in COLOR_TERMS + SIZE_TERMS):
            return True
    return False


def derive_group_patterns(msku: str, skus: Sequence[str]) -> List[Pattern]:
    """
    Derive the patterns for one group of SKUs sharing an MSKU.

    Emission order is fixed: product-name, prefix, suffix, color variants,
    size variants. Callers decide whether a group is large enough.

    Args:
        msku: The group's master SKU.
        skus: SKUs mapped to that MSKU.

    Returns:
        List[Pattern]: Patterns for this group, in emission order.
    """
    patterns: List[Pattern] = []

    product_match = PRODUCT_MSKU_RE.fullmatch(msku)
    if product_match:
        patterns.append(
            Pattern(msku, PatternKind.PRODUCT_NAME, product_match.group(1), PRODUCT_NAME_CONFIDENCE)
        )

    lower_skus = [sku.lower() for sku in skus]

    prefix = longest_common_prefix(lower_skus)
    if len(prefix) >= MIN_AFFIX_LENGTH:
        patterns.append(Pattern(msku, PatternKind.PREFIX, prefix, AFFIX_CONFIDENCE))

    suffix = longest_common_suffix(lower_skus)
    if len(suffix) >= MIN_AFFIX_LENGTH:
        patterns.append(Pattern(msku, PatternKind.SUFFIX, suffix, AFFIX_CONFIDENCE))

    # NOTE: once any SKU in the group carries a color or size term, every
    # vocabulary term becomes a pattern for this MSKU, including terms that
    # never appear in the data.
    if _has_variant_term(lower_skus):
        for color in COLOR_TERMS:
            patterns.append(Pattern(msku, PatternKind.COLOR_VARIANT, color, VARIANT_CONFIDENCE))
        for size in SIZE_TERMS:
            patterns.append(Pattern(msku, PatternKind.SIZE_VARIANT, size, VARIANT_CONFIDENCE))

    return patterns


def build_patterns(mappings: Iterable) -> List[Pattern]:
    """
    Build the full pattern list from a mapping set.

    Mappings are grouped by MSKU in first-appearance order; only groups with
    at least two members produce patterns.

    Args:
        mappings: Objects exposing ``sku`` and ``msku`` attributes.

    Returns:
        List[Pattern]: All derived patterns, in group order.
    """
    groups: Dict[str, List[str]] = {}
    for mapping in mappings:
        groups.setdefault(mapping.msku, []).append(mapping.sku)

    patterns: List[Pattern] = []
    for msku, skus in groups.items():
        if len(skus) >= 2:
            patterns.extend(derive_group_patterns(msku, skus))

    logger.debug(f"Derived {len(patterns)} patterns from {len(groups)} MSKU groups")
    return patterns
