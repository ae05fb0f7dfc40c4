"""
Utilities Package

Helper functions used across the application:
- slugs.py: URL-safe identifiers derived from titles and names
- dates.py: timezone-aware timestamps
"""
