"""
Matching Module

Tiered resolution of order lines to canonical catalog products,
with a hard section filter.
"""

from .pipeline import MATCH_TIERS, CatalogMatcher, EmptyCatalogError, match

__all__ = ['CatalogMatcher', 'EmptyCatalogError', 'MATCH_TIERS', 'match']
