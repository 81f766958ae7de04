"""
FastAPI RESTful API for the Library Catalog.

This module provides a REST API for:
- Author management with a delete guard against referencing books
- Book management with author validation and expansion
- Paginated, searchable listings
- A uniform error envelope for every failure
"""
