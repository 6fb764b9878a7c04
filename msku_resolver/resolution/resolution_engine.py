"""
SKU resolution engine.

Resolves seller-specific SKUs to master SKUs (MSKUs) using an exact-match
index keyed by (sku, marketplace) and a set of patterns derived from the
mappings that share an MSKU. The pattern set is rebuilt in full after every
mutation.

The engine is not thread-safe; see ResolutionService for a serialized owner.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping as MappingType, Optional, Tuple

from msku_resolver.exceptions import (
    AppException,
    DuplicateMappingError,
    InvalidArgumentError,
    MappingNotFoundError,
    NoMatchError,
)
from msku_resolver.resolution.patterns import Pattern, PatternKind, build_patterns


logger = logging.getLogger(__name__)

DUPLICATE_STRATEGIES = ("merge", "ignore", "error")

EXACT = "exact"
PATTERN = "pattern"


def mapping_key(sku: str, marketplace: str) -> str:
    """Build the case-insensitive identity key for a (sku, marketplace) pair."""
    return f"{sku.lower()}:{marketplace.lower()}"


@dataclass
class Mapping:
    """
    One seller-specific SKU's canonical identity on one marketplace.

    Attributes:
        sku: Marketplace/seller SKU.
        msku: Master SKU.
        marketplace: Marketplace name (Amazon, Shopify, ...).
    """

    sku: str
    msku: str
    marketplace: str

    @property
    def key(self) -> str:
        return mapping_key(self.sku, self.marketplace)

    def to_dict(self) -> Dict[str, str]:
        """Convert to dictionary for JSON serialization."""
        return {"sku": self.sku, "msku": self.msku, "marketplace": self.marketplace}


@dataclass
class MatchResult:
    """
    Outcome of a successful lookup.

    Attributes:
        msku: Resolved master SKU.
        match_type: "exact" or "pattern".
        confidence: 1.0 for exact matches, the pattern's score otherwise.
        pattern_kind: Kind of the winning pattern (pattern matches only).
    """

    msku: str
    match_type: str
    confidence: float = 1.0
    pattern_kind: Optional[str] = None

    @property
    def is_exact(self) -> bool:
        return self.match_type == EXACT

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: Dict[str, Any] = {
            "msku": self.msku,
            "match_type": self.match_type,
            "confidence": self.confidence,
        }
        if self.pattern_kind:
            result["pattern_kind"] = self.pattern_kind
        return result


@dataclass
class BulkReport:
    """
    Accounting for a bulk resolution run.

    Attributes:
        processed: Number of items looked at.
        matched: Items that resolved (exact or pattern).
        not_matched: Items that failed, with the error recorded in details.
        details: One entry per input item, in input order.
    """

    processed: int = 0
    matched: int = 0
    not_matched: int = 0
    details: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def match_rate(self) -> float:
        return self.matched / self.processed if self.processed else 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "processed": self.processed,
            "matched": self.matched,
            "not_matched": self.not_matched,
            "details": self.details,
        }


class SkuResolutionEngine:
    """
    Resolves SKUs to MSKUs.

    Responsible for:
    - Holding the mapping set and its exact-match index
    - Deriving fuzzy patterns from mappings that share an MSKU
    - Single and bulk lookups with confidence scores

    Attributes:
        exact_matches: Dictionary of normalized key -> MSKU.
    """

    def __init__(
        self,
        mappings: Optional[Iterable[Any]] = None,
        duplicate_handling: str = "merge",
    ) -> None:
        """
        Initialize the engine from an initial set of mappings.

        Args:
            mappings: Mapping objects or dicts with sku/msku/marketplace.
                The engine keeps its own copy.
            duplicate_handling: How to treat repeated (sku, marketplace)
                keys in the initial set:
                - "merge": Keep the last record (overwrites)
                - "ignore": Keep the first record (skips duplicates)
                - "error": Raise DuplicateMappingError

        Raises:
            ValueError: If duplicate_handling is not a known strategy.
            DuplicateMappingError: On duplicates with the "error" strategy.
        """
        if duplicate_handling not in DUPLICATE_STRATEGIES:
            raise ValueError(
                f"Unknown duplicate handling strategy: {duplicate_handling}. "
                f"Expected one of {DUPLICATE_STRATEGIES}"
            )

        self._mappings: List[Mapping] = []
        self.exact_matches: Dict[str, str] = {}
        self._patterns: List[Pattern] = []

        self._load_initial(mappings or [], duplicate_handling)
        self.rebuild_patterns()

    def _load_initial(self, records: Iterable[Any], strategy: str) -> None:
        by_key: Dict[str, Mapping] = {}
        duplicates: List[str] = []

        for record in records:
            mapping = _coerce_mapping(record)
            key = mapping.key
            if key in by_key:
                duplicates.append(key)
                if strategy == "error":
                    raise DuplicateMappingError(mapping.sku, mapping.marketplace)
                if strategy == "ignore":
                    continue
                # "merge": the later record replaces the earlier one
                del by_key[key]
            by_key[key] = mapping

        if duplicates:
            logger.warning(
                f"Duplicate mapping keys detected: {duplicates}. "
                f"Using '{strategy}' strategy."
            )

        self._mappings = list(by_key.values())
        self.exact_matches = {m.key: m.msku for m in self._mappings}

    @property
    def mappings(self) -> List[Mapping]:
        """Copy of the current mapping set, in insertion order."""
        return list(self._mappings)

    @property
    def patterns(self) -> List[Pattern]:
        """Copy of the current pattern list, in rebuild order."""
        return list(self._patterns)

    def __len__(self) -> int:
        return len(self._mappings)

    def __contains__(self, item: Tuple[str, str]) -> bool:
        sku, marketplace = item
        return mapping_key(sku, marketplace) in self.exact_matches

    def add_mapping(self, sku: str, msku: str, marketplace: str) -> Mapping:
        """
        Add a new mapping and rebuild patterns.

        Args:
            sku: Marketplace SKU.
            msku: Master SKU.
            marketplace: Marketplace name.

        Returns:
            Mapping: The stored mapping.

        Raises:
            DuplicateMappingError: If (sku, marketplace) is already mapped.
        """
        key = mapping_key(sku, marketplace)
        if key in self.exact_matches:
            raise DuplicateMappingError(sku, marketplace)

        mapping = Mapping(sku=sku, msku=msku, marketplace=marketplace)
        self.exact_matches[key] = msku
        self._mappings.append(mapping)
        self.rebuild_patterns()

        logger.info(f"Added mapping {sku} ({marketplace}) -> {msku}")
        return mapping

    def remove_mapping(self, sku: str, marketplace: str) -> Mapping:
        """
        Remove a mapping and rebuild patterns.

        Args:
            sku: Marketplace SKU (case-insensitive).
            marketplace: Marketplace name (case-insensitive).

        Returns:
            Mapping: The removed mapping.

        Raises:
            MappingNotFoundError: If no mapping exists for the pair.
        """
        key = mapping_key(sku, marketplace)
        if key not in self.exact_matches:
            raise MappingNotFoundError(sku, marketplace)

        del self.exact_matches[key]
        index = next(i for i, m in enumerate(self._mappings) if m.key == key)
        removed = self._mappings.pop(index)
        self.rebuild_patterns()

        logger.info(f"Removed mapping {removed.sku} ({removed.marketplace})")
        return removed

    def replace_mapping(
        self, old_sku: str, old_marketplace: str, sku: str, msku: str, marketplace: str
    ) -> Mapping:
        """
        Replace a mapping in place, keeping its position in insertion order.

        Nothing changes if either check fails.

        Args:
            old_sku: SKU of the mapping to replace (case-insensitive).
            old_marketplace: Marketplace of the mapping to replace.
            sku: New marketplace SKU.
            msku: New master SKU.
            marketplace: New marketplace name.

        Returns:
            Mapping: The stored replacement.

        Raises:
            MappingNotFoundError: If no mapping exists for the old pair.
            DuplicateMappingError: If the new pair belongs to another mapping.
        """
        old_key = mapping_key(old_sku, old_marketplace)
        if old_key not in self.exact_matches:
            raise MappingNotFoundError(old_sku, old_marketplace)

        new_key = mapping_key(sku, marketplace)
        if new_key != old_key and new_key in self.exact_matches:
            raise DuplicateMappingError(sku, marketplace)

        index = next(i for i, m in enumerate(self._mappings) if m.key == old_key)
        mapping = Mapping(sku=sku, msku=msku, marketplace=marketplace)
        self._mappings[index] = mapping
        del self.exact_matches[old_key]
        self.exact_matches[new_key] = msku
        self.rebuild_patterns()

        logger.info(f"Replaced mapping {old_sku} ({old_marketplace}) with {sku} ({marketplace}) -> {msku}")
        return mapping

    def rebuild_patterns(self) -> List[Pattern]:
        """Regenerate every pattern from the current mapping set."""
        self._patterns = build_patterns(self._mappings)
        logger.debug(
            f"Rebuilt {len(self._patterns)} patterns from {len(self._mappings)} mappings"
        )
        return self._patterns

    def find_pattern_match(self, sku: str) -> Optional[Pattern]:
        """
        Find the highest-confidence pattern matching a SKU.

        Ties resolve to the pattern generated first.

        Args:
            sku: SKU to test.

        Returns:
            Pattern if any matched, None otherwise.
        """
        matching = [p for p in self._patterns if p.matches(sku)]
        if not matching:
            return None

        matching.sort(key=lambda p: p.confidence, reverse=True)
        return matching[0]

    def get_msku(self, sku: Optional[str], marketplace: Optional[str]) -> MatchResult:
        """
        Resolve a SKU on a marketplace to its MSKU.

        Exact matches always take precedence over pattern matches. Non-string
        values (numeric SKUs from JSON, for example) are compared as strings.

        Args:
            sku: Marketplace SKU.
            marketplace: Marketplace name.

        Returns:
            MatchResult: The resolved MSKU with match type and confidence.

        Raises:
            InvalidArgumentError: If sku or marketplace is missing (sku first).
            NoMatchError: If neither an exact nor a pattern match exists.
        """
        if sku is not None and not isinstance(sku, str):
            sku = str(sku)
        if marketplace is not None and not isinstance(marketplace, str):
            marketplace = str(marketplace)

        if not sku:
            raise InvalidArgumentError("SKU is required", field="sku")
        if not marketplace:
            raise InvalidArgumentError("Marketplace is required", field="marketplace")

        key = mapping_key(sku, marketplace)
        if key in self.exact_matches:
            return MatchResult(msku=self.exact_matches[key], match_type=EXACT)

        pattern = self.find_pattern_match(sku)
        if pattern is not None:
            logger.debug(f"Pattern match for {sku}: {pattern.kind.value} '{pattern.term}' -> {pattern.msku}")
            return MatchResult(
                msku=pattern.msku,
                match_type=PATTERN,
                confidence=pattern.confidence,
                pattern_kind=pattern.kind.value,
            )

        raise NoMatchError(sku, marketplace)

    def bulk_process(self, items: Iterable[MappingType[str, Any]]) -> BulkReport:
        """
        Resolve many SKUs, collecting failures instead of raising.

        Args:
            items: Dicts with "sku" and "marketplace" keys; other keys are ignored.

        Returns:
            BulkReport: Counts plus one detail entry per item.
        """
        report = BulkReport()

        for item in items:
            report.processed += 1
            sku = item.get("sku")
            marketplace = item.get("marketplace")

            try:
                result = self.get_msku(sku, marketplace)
            except AppException as e:
                report.not_matched += 1
                report.details.append({
                    "sku": sku,
                    "marketplace": marketplace,
                    "error": e.message,
                })
                continue

            report.matched += 1
            report.details.append({
                "sku": sku,
                "marketplace": marketplace,
                "msku": result.msku,
                "match_type": result.match_type,
                "confidence": result.confidence,
            })

        logger.info(
            f"Bulk processed {report.processed} SKUs: "
            f"{report.matched} matched, {report.not_matched} not matched"
        )
        return report

    def get_stats(self) -> Dict[str, Any]:
        """
        Get statistics about the loaded mappings and derived patterns.

        Returns:
            Dict with mapping, MSKU and marketplace counts, and patterns by kind.
        """
        by_kind = {kind.value: 0 for kind in PatternKind}
        for pattern in self._patterns:
            by_kind[pattern.kind.value] += 1

        return {
            "total_mappings": len(self._mappings),
            "distinct_mskus": len({m.msku for m in self._mappings}),
            "marketplaces": sorted({m.marketplace for m in self._mappings}),
            "total_patterns": len(self._patterns),
            "patterns_by_kind": by_kind,
        }


def _coerce_mapping(record: Any) -> Mapping:
    if isinstance(record, Mapping):
        return Mapping(sku=record.sku, msku=record.msku, marketplace=record.marketplace)
    return Mapping(
        sku=record["sku"],
        msku=record["msku"],
        marketplace=record["marketplace"],
    )
