"""
Bookstore Catalog API Package

GraphQL API for managing a bookstore catalog: books, categories and users.

Package Structure:
- config.py: Application configuration using Pydantic Settings
- database.py: SQLAlchemy engine/session wrapper and request dependency
- errors.py: Error taxonomy shared by services and the GraphQL layer
- main.py: FastAPI application factory and configuration
- models/: SQLAlchemy ORM models
- schemas/: Pydantic payload and filter schemas
- services/: Business logic (auth, query building, per-entity operations)
- graphql/: Strawberry schema, context, queries and mutations
- utils/: Helper functions
"""

__version__ = "0.1.0"
