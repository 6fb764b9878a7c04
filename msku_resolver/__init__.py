"""
MSKU resolver.

Reconciles marketplace-specific SKUs into master SKUs using an exact-match
index and patterns derived from existing mappings.
"""

__version__ = "1.0.0"
