"""
Services Package

Business logic used by the GraphQL resolvers. Every public operation
takes the request's Session first and, where it is gated, the caller's
Identity second.

- security.py: password hashing and access tokens
- auth.py: header → Identity resolution and role gates
- filters.py / pagination.py: query building
- books.py, categories.py, users.py, ratings.py: per-entity operations
"""
