"""
Top‑level package for the Store Ratings API.

This file makes ``store_ratings_api`` a Python package so that modules
within ``app`` can be imported using fully qualified names like
``store_ratings_api.app.main``.

The package provides no public exports; all functionality lives in
submodules under ``app``.
"""

__all__ = []
