"""
Test Suite for the Bookstore API

Test Organization:
- conftest.py: Shared fixtures (in-memory database, client, sample data)
- test_pagination.py / test_filters.py: query builder
- test_auth.py: hashing, tokens, identity resolution, gates
- test_models.py: slugs, cover images, virtual fields
- test_books.py / test_categories.py / test_users.py / test_ratings.py: services
- test_graphql.py: the /graphql endpoint end to end
- test_app.py: health, root, 404 and CORS

Running Tests:
    pip install -e ".[test]"
    pytest
    pytest tests/test_books.py -v
"""
