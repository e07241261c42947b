"""Catalog vertical — the library's holdings.

Everything the catalog needs in one domain:
- SQLAlchemy models for authors, genres, books and book instances
- Async repositories with natural-key sorting and dependent lookups
- Form rules for each editable entity
- FastAPI routers for the HTML workflows and the JSON search endpoint
- Jinja2 templates under templates/
"""
