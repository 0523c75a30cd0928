from .client import CatalogClient
from .schemas import CatalogNode, CatalogObject, CatalogPath

__all__ = [
    "CatalogClient",
    "CatalogNode",
    "CatalogObject",
    "CatalogPath",
]
