"""
GraphQL API Tests

End-to-end tests through the /graphql endpoint:
- Query tests (books, categories, users, me)
- Mutation tests (auth, CRUD, stock, ratings)
- Authorization tests
"""

import asyncio

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from bookstore.graphql import context as graphql_context
from bookstore.models import Book, Category
from bookstore.services import books as book_service
from bookstore.services import categories as category_service

# =============================================================================
# Helper Functions
# =============================================================================


def graphql_query(client: TestClient, query: str, variables: dict = None, token: str = None):
    """Execute a GraphQL query and return the response."""
    headers = {"Content-Type": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"

    payload = {"query": query}
    if variables:
        payload["variables"] = variables

    response = client.post("/graphql", json=payload, headers=headers)
    return response.json()


def error_message(result: dict) -> str:
    return result["errors"][0]["message"]


# =============================================================================
# Book Queries
# =============================================================================


class TestBooksQuery:
    def test_list_books_empty(self, client: TestClient):
        query = """
        query {
            books {
                books { id title }
                totalCount
                totalPages
                currentPage
                hasNextPage
                hasPreviousPage
            }
        }
        """
        result = graphql_query(client, query)

        assert "errors" not in result
        data = result["data"]["books"]
        assert data["books"] == []
        assert data["totalCount"] == 0
        assert data["totalPages"] == 0
        assert data["hasNextPage"] is False
        assert data["hasPreviousPage"] is False

    def test_list_books_with_data(self, client: TestClient, sample_book: Book):
        query = """
        query {
            books {
                books {
                    id
                    title
                    author
                    price
                    inStock
                    url
                    tags
                    category { name slug }
                }
                totalCount
            }
        }
        """
        result = graphql_query(client, query)

        assert "errors" not in result
        book = result["data"]["books"]["books"][0]
        assert book["title"] == "Clean Code"
        assert book["inStock"] is True
        assert book["url"].startswith("/books/clean-code-")
        assert book["tags"] == ["craft", "programming"]
        assert book["category"] == {"name": "Programming", "slug": "programming"}

    def test_pagination_and_filter(self, client: TestClient, multiple_books: list[Book]):
        query = """
        query Books($filter: BookFilterInput) {
            books(page: 2, limit: 5, filter: $filter, sortBy: "PRICE", sortOrder: "ASC") {
                books { title price }
                totalCount
                totalPages
                hasNextPage
                hasPreviousPage
            }
        }
        """
        result = graphql_query(client, query, {"filter": {"inStock": True}})

        assert "errors" not in result
        data = result["data"]["books"]
        assert data["totalCount"] == 11
        assert data["totalPages"] == 3
        assert data["hasNextPage"] is True
        assert data["hasPreviousPage"] is True
        prices = [b["price"] for b in data["books"]]
        assert prices == sorted(prices)

    def test_zero_limit_is_rejected(self, client: TestClient):
        result = graphql_query(client, "query { books(limit: 0) { totalCount } }")
        assert error_message(result) == "Error fetching books: Limit must be greater than 0"

    def test_book_not_found(self, client: TestClient):
        result = graphql_query(client, "query { book(id: 999) { id } }")
        assert error_message(result) == "Error fetching book: Book not found"

    def test_book_by_slug_counts_views(self, client: TestClient, sample_book: Book):
        query = "query($slug: String!) { bookBySlug(slug: $slug) { id viewCount } }"
        graphql_query(client, query, {"slug": sample_book.slug})
        result = graphql_query(client, query, {"slug": sample_book.slug})

        assert result["data"]["bookBySlug"]["viewCount"] == 2

    def test_book_stats_is_public(self, client: TestClient, sample_book: Book):
        result = graphql_query(client, "query { bookStats { totalBooks activeBooks totalStock } }")
        assert result["data"]["bookStats"] == {"totalBooks": 1, "activeBooks": 1, "totalStock": 10}

    def test_all_books_requires_admin(self, client: TestClient, customer_token: str):
        result = graphql_query(client, "query { allBooks { totalCount } }", token=customer_token)
        assert error_message(result) == "Error fetching all books: Access denied. Admin privileges required."


# =============================================================================
# Book Mutations
# =============================================================================


class TestBookMutations:
    CREATE = """
    mutation Create($input: BookInput!) {
        createBook(input: $input) {
            id
            title
            slug
            format
            coverImage { url alt }
            category { id }
        }
    }
    """

    def test_create_book_round_trip(
        self,
        client: TestClient,
        db_session: Session,
        admin_token: str,
        sample_category: Category,
    ):
        variables = {
            "input": {
                "title": "Domain-Driven Design",
                "author": "Eric Evans",
                "description": "Tackling complexity in the heart of software",
                "price": 54.0,
                "categoryId": sample_category.id,
                "format": "hardcover",
                "images": [{"url": "/uploads/ddd.jpg", "publicId": "ddd", "isMain": True}],
            }
        }
        result = graphql_query(client, self.CREATE, variables, token=admin_token)

        assert "errors" not in result
        book = result["data"]["createBook"]
        assert book["format"] == "hardcover"
        assert book["slug"].startswith("domain-driven-design-")
        assert book["coverImage"] == {"url": "/uploads/ddd.jpg", "alt": "Domain-Driven Design"}
        assert book["category"]["id"] == sample_category.id

        db_session.refresh(sample_category)
        assert sample_category.book_count == 1

    def test_create_book_anonymous(self, client: TestClient, sample_category: Category):
        variables = {
            "input": {
                "title": "X",
                "author": "Y",
                "description": "Z",
                "price": 1.0,
                "categoryId": sample_category.id,
            }
        }
        result = graphql_query(client, self.CREATE, variables)
        assert error_message(result) == "Error creating book: Authentication required. Please log in."

    def test_update_book_only_sent_fields(self, client: TestClient, admin_token: str, sample_book: Book):
        query = """
        mutation($id: Int!) {
            updateBook(id: $id, input: {price: 25.5}) { title price }
        }
        """
        result = graphql_query(client, query, {"id": sample_book.id}, token=admin_token)

        assert result["data"]["updateBook"] == {"title": "Clean Code", "price": 25.5}

    def test_toggle_featured_flips_back(self, client: TestClient, admin_token: str, sample_book: Book):
        query = "mutation($id: Int!) { toggleFeaturedStatus(id: $id) { isFeatured } }"

        first = graphql_query(client, query, {"id": sample_book.id}, token=admin_token)
        second = graphql_query(client, query, {"id": sample_book.id}, token=admin_token)

        assert first["data"]["toggleFeaturedStatus"]["isFeatured"] is True
        assert second["data"]["toggleFeaturedStatus"]["isFeatured"] is False

    def test_update_book_stock(self, client: TestClient, admin_token: str, sample_book: Book):
        query = """
        mutation($id: Int!, $quantity: Int!, $operation: String!) {
            updateBookStock(id: $id, quantity: $quantity, operation: $operation) { stock sold inStock }
        }
        """
        result = graphql_query(
            client, query, {"id": sample_book.id, "quantity": 15, "operation": "subtract"}, token=admin_token
        )
        assert result["data"]["updateBookStock"] == {"stock": 0, "sold": 10, "inStock": False}

        result = graphql_query(
            client, query, {"id": sample_book.id, "quantity": 1, "operation": "steal"}, token=admin_token
        )
        assert error_message(result) == 'Error updating stock: Invalid operation. Use "add" or "subtract"'

    def test_update_book_rating(self, client: TestClient, customer_token: str, sample_book: Book):
        query = "mutation($id: Int!, $rating: Float!) { updateBookRating(id: $id, rating: $rating) { rating reviewCount } }"

        graphql_query(client, query, {"id": sample_book.id, "rating": 5}, token=customer_token)
        result = graphql_query(client, query, {"id": sample_book.id, "rating": 2}, token=customer_token)

        assert result["data"]["updateBookRating"] == {"rating": 3.5, "reviewCount": 2}

    def test_delete_book(self, client: TestClient, db_session: Session, admin_token: str,
                         sample_book: Book, sample_category: Category):
        result = graphql_query(
            client, "mutation($id: Int!) { deleteBook(id: $id) }", {"id": sample_book.id}, token=admin_token
        )

        assert result["data"]["deleteBook"] is True
        db_session.refresh(sample_category)
        assert sample_category.book_count == 0


# =============================================================================
# Categories
# =============================================================================


class TestCategories:
    def test_create_child_and_read_hierarchy(self, client: TestClient, admin_token: str, sample_category: Category):
        create = """
        mutation($input: CategoryInput!) {
            createCategory(input: $input) { id name parentCategory { id name } }
        }
        """
        result = graphql_query(
            client,
            create,
            {"input": {"name": "Python", "parentCategoryId": sample_category.id}},
            token=admin_token,
        )
        assert result["data"]["createCategory"]["parentCategory"]["name"] == "Programming"

        result = graphql_query(
            client,
            "query { categoryHierarchy { name children { name } } }",
        )
        assert result["data"]["categoryHierarchy"] == [
            {"name": "Programming", "children": [{"name": "Python"}]}
        ]

        result = graphql_query(
            client,
            "query($id: Int!) { category(id: $id) { subCategories { name } url } }",
            {"id": sample_category.id},
        )
        assert result["data"]["category"] == {
            "subCategories": [{"name": "Python"}],
            "url": "/categories/programming",
        }

    def test_delete_category_with_books(self, client: TestClient, admin_token: str,
                                        sample_book: Book, sample_category: Category):
        result = graphql_query(
            client,
            "mutation($id: Int!) { deleteCategory(id: $id) }",
            {"id": sample_category.id},
            token=admin_token,
        )
        assert error_message(result) == (
            "Error deleting category: Cannot delete category. It has 1 books associated with it."
        )

    def test_duplicate_category_name(self, client: TestClient, admin_token: str, sample_category: Category):
        result = graphql_query(
            client,
            'mutation { createCategory(input: {name: "Programming", slug: "programming-again"}) { id } }',
            token=admin_token,
        )
        assert error_message(result) == "Category name already exists"

    def test_reorder(self, client: TestClient, admin_token: str,
                     sample_category: Category, second_category: Category):
        query = """
        mutation($orders: [CategoryOrderInput!]!) {
            reorderCategories(categoryOrders: $orders) { name sortOrder }
        }
        """
        orders = [
            {"id": sample_category.id, "sortOrder": 5},
            {"id": second_category.id, "sortOrder": 1},
        ]
        result = graphql_query(client, query, {"orders": orders}, token=admin_token)
        assert "errors" not in result

        result = graphql_query(client, "query { activeCategories { name } }")
        assert [c["name"] for c in result["data"]["activeCategories"]] == ["Fiction", "Programming"]


# =============================================================================
# Authentication & Users
# =============================================================================


class TestAuthMutations:
    REGISTER = """
    mutation($input: RegisterInput!) {
        register(input: $input) { token expiresIn user { email role } }
    }
    """
    LOGIN = """
    mutation($input: LoginInput!) {
        login(input: $input) { token user { email role lastLogin } }
    }
    """

    def test_register_login_and_me(self, client: TestClient):
        result = graphql_query(
            client, self.REGISTER, {"input": {"name": "A", "email": "a@x.com", "password": "secret1"}}
        )
        assert "errors" not in result
        payload = result["data"]["register"]
        assert payload["expiresIn"] == "7 days"
        assert payload["user"] == {"email": "a@x.com", "role": "customer"}

        result = graphql_query(client, self.LOGIN, {"input": {"email": "a@x.com", "password": "secret1"}})
        token = result["data"]["login"]["token"]
        assert token
        assert result["data"]["login"]["user"]["lastLogin"] is not None

        me = graphql_query(client, "query { me { email role fullAddress } }", token=token)
        assert me["data"]["me"] == {"email": "a@x.com", "role": "customer", "fullAddress": ""}

    def test_login_wrong_password(self, client: TestClient):
        graphql_query(client, self.REGISTER, {"input": {"name": "A", "email": "a@x.com", "password": "secret1"}})

        result = graphql_query(client, self.LOGIN, {"input": {"email": "a@x.com", "password": "nope"}})

        assert result["data"] is None
        assert "Invalid email or password" in error_message(result)

    def test_me_anonymous(self, client: TestClient):
        result = graphql_query(client, "query { me { id } }")
        assert "Authentication required" in error_message(result)

    def test_invalid_token_is_anonymous(self, client: TestClient):
        result = graphql_query(client, "query { me { id } }", token="garbage")
        assert "Authentication required" in error_message(result)

    def test_logout(self, client: TestClient):
        result = graphql_query(client, "mutation { logout }")
        assert result["data"]["logout"] is True

    def test_update_profile(self, client: TestClient, customer_token: str):
        query = """
        mutation {
            updateProfile(input: {phone: "0909", address: {city: "Hanoi", country: "VN"}}) {
                phone
                fullAddress
                address { city zipCode }
            }
        }
        """
        result = graphql_query(client, query, token=customer_token)
        assert result["data"]["updateProfile"] == {
            "phone": "0909",
            "fullAddress": "Hanoi, VN",
            "address": {"city": "Hanoi", "zipCode": None},
        }


class TestUserAdministration:
    def test_users_listing(self, client: TestClient, admin_token: str, customer_user):
        query = """
        query {
            users(filter: {role: "customer"}) { users { email } totalCount }
        }
        """
        result = graphql_query(client, query, token=admin_token)
        assert result["data"]["users"] == {"users": [{"email": "customer@example.com"}], "totalCount": 1}

    def test_admin_cannot_delete_self(self, client: TestClient, admin_token: str, admin_user):
        result = graphql_query(
            client, "mutation($id: Int!) { deleteUser(id: $id) }", {"id": admin_user.id}, token=admin_token
        )
        assert error_message(result) == "Error deleting user: Cannot delete your own account"

    def test_customer_cannot_read_other_user(self, client: TestClient, customer_token: str, admin_user):
        result = graphql_query(
            client, "query($id: Int!) { user(id: $id) { email } }", {"id": admin_user.id}, token=customer_token
        )
        assert error_message(result) == (
            "Error fetching user: Access denied. You can only access your own resources."
        )

    def test_user_stats(self, client: TestClient, admin_token: str, customer_user):
        result = graphql_query(client, "query { userStats { totalUsers admins customers } }", token=admin_token)
        assert result["data"]["userStats"] == {"totalUsers": 2, "admins": 1, "customers": 1}


# =============================================================================
# Execution Model
# =============================================================================


def running_where() -> str:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return "threadpool"
    return "event loop"


class TestExecutionModel:
    def test_identity_lookup_runs_in_threadpool(self, client: TestClient, monkeypatch,
                                                customer_token: str):
        calls = []
        original = graphql_context.resolve_identity

        def recording(db, header):
            calls.append(running_where())
            return original(db, header)

        monkeypatch.setattr(graphql_context, "resolve_identity", recording)
        result = graphql_query(client, "query { me { email } }", token=customer_token)

        assert result["data"]["me"]["email"] == "customer@example.com"
        assert calls == ["threadpool"]

    def test_resolvers_run_in_threadpool(self, client: TestClient, monkeypatch,
                                         sample_book: Book):
        calls = []
        original = book_service.book_stats

        def recording(db):
            calls.append(running_where())
            return original(db)

        monkeypatch.setattr(book_service, "book_stats", recording)
        result = graphql_query(client, "query { bookStats { totalBooks } }")

        assert result["data"]["bookStats"]["totalBooks"] == 1
        assert calls == ["threadpool"]

    def test_root_fields_take_turns_on_the_session(self, client: TestClient, monkeypatch,
                                                   sample_book: Book):
        active = []
        overlaps = []

        def tracked(original):
            def wrapper(db):
                if active:
                    overlaps.append(original.__name__)
                active.append(1)
                try:
                    return original(db)
                finally:
                    active.pop()
            return wrapper

        monkeypatch.setattr(book_service, "book_stats", tracked(book_service.book_stats))
        monkeypatch.setattr(category_service, "category_stats", tracked(category_service.category_stats))
        query = """
        query {
            bookStats { totalBooks }
            categoryStats { totalCategories }
            books { totalCount }
        }
        """
        result = graphql_query(client, query)

        assert "errors" not in result
        assert result["data"]["categoryStats"]["totalCategories"] == 1
        assert result["data"]["books"]["totalCount"] == 1
        assert overlaps == []
