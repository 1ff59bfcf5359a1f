"""Catalog package - course publishing and user profiles."""

from coursehub.catalog.service import CatalogService

__all__ = ["CatalogService"]
