"""
Tests for the HTTP endpoints outside GraphQL: health, root and 404.
"""

from fastapi import status
from fastapi.testclient import TestClient

from bookstore.database import Database


class TestHealth:
    def test_health(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "OK"
        assert data["environment"] == "test"
        assert data["database"] == "connected"
        assert "timestamp" in data

    def test_database_ping(self, database: Database):
        database.ping()
        assert database.is_connected() is True
        assert database.dialect_name == "sqlite"


class TestRoutes:
    def test_root_lists_routes(self, client: TestClient):
        response = client.get("/")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["graphql"] == "/graphql"
        assert "GET /health" in data["availableRoutes"]

    def test_unknown_route(self, client: TestClient):
        response = client.get("/api/v1/books")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        data = response.json()
        assert data["error"] == "Route not found"
        assert "POST /graphql" in data["availableRoutes"]

    def test_graphiql_console(self, client: TestClient):
        response = client.get("/graphql", headers={"Accept": "text/html"})

        assert response.status_code == status.HTTP_200_OK
        assert "graphiql" in response.text.lower()

    def test_cors_preflight(self, client: TestClient):
        response = client.options(
            "/graphql",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "POST",
            },
        )
        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
        assert response.headers["access-control-allow-credentials"] == "true"
