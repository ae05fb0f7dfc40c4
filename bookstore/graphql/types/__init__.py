"""
GraphQL Types Package

Strawberry output and input types, one module per entity. Python
snake_case field names are exposed as camelCase in the schema.
"""
