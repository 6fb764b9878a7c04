"""
Services layer for the MSKU resolver.

Contains the engine owner used by the web app and CLI, and sales processing.
"""

from msku_resolver.services.resolution_service import DEMO_MAPPINGS, ResolutionService
from msku_resolver.services.sales_service import SalesProcessor, SalesReport

__all__ = ["ResolutionService", "DEMO_MAPPINGS", "SalesProcessor", "SalesReport"]
