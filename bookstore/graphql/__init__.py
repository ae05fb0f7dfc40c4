"""
GraphQL Package

The public API surface, built with Strawberry GraphQL.

Features:
- Book, category and user queries with filters, search and pagination
- Admin mutations gated by role
- Authentication via bearer token in context

Usage:
    The GraphQL endpoint is available at /graphql with an interactive
    GraphiQL console.

Example Query:
    query {
        books(page: 1, limit: 12, filter: {inStock: true}) {
            books { id title price category { name } }
            totalCount
            hasNextPage
        }
    }
"""

import strawberry
from strawberry.fastapi import GraphQLRouter

from bookstore.graphql.context import get_context
from bookstore.graphql.mutations import Mutation
from bookstore.graphql.queries import Query

schema = strawberry.Schema(
    query=Query,
    mutation=Mutation,
)


def create_graphql_router() -> GraphQLRouter:
    """
    Create the GraphQL router for FastAPI.

    Returns:
        GraphQLRouter configured with schema and context
    """
    return GraphQLRouter(
        schema,
        context_getter=get_context,
        graphql_ide="graphiql",
    )


__all__ = ["schema", "create_graphql_router"]
