"""Category and client taxonomy."""

from cashledger.taxonomy.defaults import DEFAULT_CATEGORIES, get_default_categories
from cashledger.taxonomy.store import TaxonomyStore

__all__ = ["DEFAULT_CATEGORIES", "TaxonomyStore", "get_default_categories"]
