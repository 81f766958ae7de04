"""
Catalog domain for the Library Catalog API.

This package provides:
- MongoDB access for the authors and books collections
- Author and book services with their referential rules
- The error taxonomy raised by both
"""
