"""
HTTP blueprints of the shop API

Each sub-package creates its Blueprint in ``__init__.py`` and registers its
views from ``routes.py``; ``create_app`` imports them one by one.
"""
