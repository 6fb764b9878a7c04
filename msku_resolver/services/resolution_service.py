"""
Resolution Service.

Owns one SkuResolutionEngine for the web application and CLI:
- Addresses mappings by id for CRUD-style callers
- Serializes every engine access with a lock
- Seeds the mapping set from the configured mapping file or demo data
"""

import logging
import threading
from typing import Any, Dict, Iterable, List, Mapping as MappingType, Optional

from msku_resolver.exceptions import InvalidArgumentError, NotFoundError
from msku_resolver.ingestion.mapping_loader import load_mappings
from msku_resolver.resolution.resolution_engine import (
    BulkReport,
    Mapping,
    MatchResult,
    SkuResolutionEngine,
)
from msku_resolver.utils.config_loader import AppConfig

logger = logging.getLogger(__name__)


DEMO_MAPPINGS = [
    Mapping("GOLDEN-APPLE", "APPLE-001", "Amazon"),
    Mapping("GLD", "APPLE-001", "Shopify"),
    Mapping("REDAPPLE", "APPLE-002", "Amazon"),
    Mapping("RED-A", "APPLE-002", "Shopify"),
    Mapping("WIDGET-BLUE", "WIDGET-001", "Amazon"),
    Mapping("BLUE-W", "WIDGET-001", "Shopify"),
    Mapping("WIDGET-RED", "WIDGET-002", "Amazon"),
    Mapping("RED-W", "WIDGET-002", "Shopify"),
    Mapping("GADGET-SMALL", "GADGET-001", "Amazon"),
    Mapping("SMALL-G", "GADGET-001", "Shopify"),
    Mapping("GADGET-LARGE", "GADGET-002", "Amazon"),
    Mapping("LARGE-G", "GADGET-002", "Shopify"),
]


class ResolutionService:
    """
    Thread-safe, id-addressed front end to the resolution engine.

    Attributes:
        config: Application configuration.
        engine: The owned engine. Access it only while holding the lock.
    """

    def __init__(self, config: AppConfig, mappings: Optional[Iterable[Mapping]] = None):
        """
        Initialize the service.

        Args:
            config: Application configuration.
            mappings: Initial mapping set.
        """
        self.config = config
        self._lock = threading.RLock()
        self.engine = SkuResolutionEngine(
            mappings or [],
            duplicate_handling=config.mapping.duplicate_handling,
        )
        self._ids: Dict[str, str] = {}
        self._next_id = 1
        for mapping in self.engine.mappings:
            self._assign_id(mapping)

        self.logger = logging.getLogger(f"{__name__}.ResolutionService")

    @classmethod
    def from_config(cls, config: AppConfig) -> "ResolutionService":
        """
        Build a service seeded from the configured mapping file.

        Falls back to DEMO_MAPPINGS when the file does not exist and
        web.seed_demo_mappings is enabled.
        """
        mapping_path = config.paths.mapping_path
        if mapping_path.exists():
            return cls(config, load_mappings(mapping_path))

        if config.web.seed_demo_mappings:
            logger.info(f"No mapping file at {mapping_path}; seeding demo mappings")
            return cls(config, DEMO_MAPPINGS)

        logger.info(f"No mapping file at {mapping_path}; starting empty")
        return cls(config)

    def _assign_id(self, mapping: Mapping) -> str:
        mapping_id = str(self._next_id)
        self._next_id += 1
        self._ids[mapping.key] = mapping_id
        return mapping_id

    def _record(self, mapping: Mapping) -> Dict[str, str]:
        return {"id": self._ids[mapping.key], **mapping.to_dict()}

    def _find(self, mapping_id: str) -> Mapping:
        for mapping in self.engine.mappings:
            if self._ids.get(mapping.key) == mapping_id:
                return mapping
        raise NotFoundError(f"Mapping not found: {mapping_id}", details={"id": mapping_id})

    @staticmethod
    def _validate_fields(sku: str, msku: str, marketplace: str) -> None:
        missing = [
            name for name, value in (("sku", sku), ("msku", msku), ("marketplace", marketplace))
            if not (value and value.strip())
        ]
        if missing:
            raise InvalidArgumentError(
                f"SKU, MSKU, and marketplace are required (missing: {', '.join(missing)})",
                field=missing[0],
            )

    def list_mappings(self) -> List[Dict[str, str]]:
        """All mappings with their ids, in insertion order."""
        with self._lock:
            return [self._record(m) for m in self.engine.mappings]

    def get_mapping(self, mapping_id: str) -> Dict[str, str]:
        """
        Get one mapping by id.

        Raises:
            NotFoundError: If the id is unknown.
        """
        with self._lock:
            return self._record(self._find(mapping_id))

    def create_mapping(self, sku: str, msku: str, marketplace: str) -> Dict[str, str]:
        """
        Create a mapping.

        Raises:
            InvalidArgumentError: If a field is empty.
            DuplicateMappingError: If (sku, marketplace) is already mapped.
        """
        self._validate_fields(sku, msku, marketplace)
        with self._lock:
            mapping = self.engine.add_mapping(sku.strip(), msku.strip(), marketplace.strip())
            self._assign_id(mapping)
            return self._record(mapping)

    def update_mapping(self, mapping_id: str, sku: str, msku: str, marketplace: str) -> Dict[str, str]:
        """
        Replace a mapping's fields, keeping its id.

        The mapping keeps its place in insertion order, so pattern tie
        order is unchanged. A collision leaves the catalog untouched.

        Raises:
            NotFoundError: If the id is unknown.
            InvalidArgumentError: If a field is empty.
            DuplicateMappingError: If the new key belongs to another mapping.
        """
        self._validate_fields(sku, msku, marketplace)
        with self._lock:
            old = self._find(mapping_id)
            mapping = self.engine.replace_mapping(
                old.sku, old.marketplace, sku.strip(), msku.strip(), marketplace.strip()
            )
            del self._ids[old.key]
            self._ids[mapping.key] = mapping_id
            self.logger.info(f"Updated mapping {mapping_id}")
            return self._record(mapping)

    def delete_mapping(self, mapping_id: str) -> Dict[str, str]:
        """
        Delete a mapping by id and return it.

        Raises:
            NotFoundError: If the id is unknown.
        """
        with self._lock:
            mapping = self._find(mapping_id)
            record = self._record(mapping)
            self.engine.remove_mapping(mapping.sku, mapping.marketplace)
            del self._ids[mapping.key]
            return record

    def resolve(self, sku: Optional[str], marketplace: Optional[str]) -> MatchResult:
        """Resolve one SKU; see SkuResolutionEngine.get_msku."""
        with self._lock:
            return self.engine.get_msku(sku, marketplace)

    def bulk_resolve(self, items: Iterable[MappingType[str, Any]]) -> BulkReport:
        """Resolve many SKUs; see SkuResolutionEngine.bulk_process."""
        with self._lock:
            return self.engine.bulk_process(items)

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            return self.engine.get_stats()
