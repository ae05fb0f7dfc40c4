"""
GraphQL Mutation Resolvers

Defines all write operations (mutations) for the GraphQL API.
Authorization lives in the service layer: every state-changing service
passes exactly one gate (authenticated, admin, or owner-or-admin) before
it touches data. register, login and logout are open.
"""

import strawberry
from strawberry.types import Info

from bookstore.graphql.context import GraphQLContext
from bookstore.graphql.queries import (
    auth_to_graphql,
    book_to_graphql,
    category_to_graphql,
    user_to_graphql,
)
from bookstore.graphql.types.book import BookInput, BookType, BookUpdateInput
from bookstore.graphql.types.category import (
    CategoryInput,
    CategoryOrderInput,
    CategoryType,
    CategoryUpdateInput,
)
from bookstore.graphql.types.user import (
    AdminUpdateUserInput,
    AuthPayload,
    ChangePasswordInput,
    CreateUserInput,
    LoginInput,
    RegisterInput,
    UpdateProfileInput,
    UserType,
)
from bookstore.graphql.utils import in_threadpool, to_payload
from bookstore.services import books as book_service
from bookstore.services import categories as category_service
from bookstore.services import ratings as rating_service
from bookstore.services import users as user_service


@strawberry.type
class Mutation:
    """
    GraphQL Mutation type containing all write operations.

    Most mutations require a bearer token; admin mutations additionally
    require the admin role.
    """

    # =========================================================================
    # Authentication Mutations
    # =========================================================================

    @strawberry.mutation(description="Register a new customer account")
    @in_threadpool
    def register(self, info: Info[GraphQLContext, None], input: RegisterInput) -> AuthPayload:
        result = user_service.register(info.context.db, to_payload(input, drop_none=True))
        return auth_to_graphql(result)

    @strawberry.mutation(description="Login with email and password")
    @in_threadpool
    def login(self, info: Info[GraphQLContext, None], input: LoginInput) -> AuthPayload:
        """
        Authenticate with email and password.

        Bad credentials report "Invalid email or password" whether the
        email or the password was wrong.
        """
        result = user_service.login(info.context.db, to_payload(input))
        return auth_to_graphql(result)

    @strawberry.mutation(description="Logout (tokens are stateless; the client discards its copy)")
    def logout(self) -> bool:
        return user_service.logout()

    @strawberry.mutation(description="Update the current user's profile")
    @in_threadpool
    def update_profile(
        self,
        info: Info[GraphQLContext, None],
        input: UpdateProfileInput,
    ) -> UserType:
        user = user_service.update_profile(info.context.db, info.context.identity, to_payload(input))
        return user_to_graphql(user)

    @strawberry.mutation(description="Change the current user's password")
    @in_threadpool
    def change_password(self, info: Info[GraphQLContext, None], input: ChangePasswordInput) -> bool:
        return user_service.change_password(info.context.db, info.context.identity, to_payload(input))

    # =========================================================================
    # Book Mutations
    # =========================================================================

    @strawberry.mutation(description="Admin: create a new book")
    @in_threadpool
    def create_book(self, info: Info[GraphQLContext, None], input: BookInput) -> BookType:
        book = book_service.create_book(
            info.context.db, info.context.identity, to_payload(input, drop_none=True)
        )
        return book_to_graphql(book)

    @strawberry.mutation(description="Admin: update an existing book")
    @in_threadpool
    def update_book(
        self,
        info: Info[GraphQLContext, None],
        id: int,
        input: BookUpdateInput,
    ) -> BookType:
        book = book_service.update_book(info.context.db, info.context.identity, id, to_payload(input))
        return book_to_graphql(book)

    @strawberry.mutation(description="Admin: delete a book")
    @in_threadpool
    def delete_book(self, info: Info[GraphQLContext, None], id: int) -> bool:
        return book_service.delete_book(info.context.db, info.context.identity, id)

    @strawberry.mutation(description="Admin: flip a book's active flag")
    @in_threadpool
    def toggle_book_status(self, info: Info[GraphQLContext, None], id: int) -> BookType:
        return book_to_graphql(book_service.toggle_book_status(info.context.db, info.context.identity, id))

    @strawberry.mutation(description="Admin: flip a book's featured flag")
    @in_threadpool
    def toggle_featured_status(self, info: Info[GraphQLContext, None], id: int) -> BookType:
        book = book_service.toggle_featured_status(info.context.db, info.context.identity, id)
        return book_to_graphql(book)

    @strawberry.mutation(description='Admin: adjust stock with operation "add" or "subtract"')
    @in_threadpool
    def update_book_stock(
        self,
        info: Info[GraphQLContext, None],
        id: int,
        quantity: int,
        operation: str,
    ) -> BookType:
        book = book_service.update_book_stock(
            info.context.db, info.context.identity, id, quantity, operation
        )
        return book_to_graphql(book)

    @strawberry.mutation(description="Admin: apply the same update to several books")
    @in_threadpool
    def bulk_update_books(
        self,
        info: Info[GraphQLContext, None],
        ids: list[int],
        input: BookUpdateInput,
    ) -> list[BookType]:
        books = book_service.bulk_update_books(
            info.context.db, info.context.identity, ids, to_payload(input)
        )
        return [book_to_graphql(b) for b in books]

    @strawberry.mutation(description="Admin: delete several books")
    @in_threadpool
    def bulk_delete_books(self, info: Info[GraphQLContext, None], ids: list[int]) -> bool:
        return book_service.bulk_delete_books(info.context.db, info.context.identity, ids)

    @strawberry.mutation(description="Submit a rating between 0 and 5")
    @in_threadpool
    def update_book_rating(
        self,
        info: Info[GraphQLContext, None],
        id: int,
        rating: float,
    ) -> BookType:
        book = rating_service.update_book_rating(info.context.db, info.context.identity, id, rating)
        return book_to_graphql(book)

    # =========================================================================
    # Category Mutations
    # =========================================================================

    @strawberry.mutation(description="Admin: create a category, optionally under a parent")
    @in_threadpool
    def create_category(self, info: Info[GraphQLContext, None], input: CategoryInput) -> CategoryType:
        db = info.context.db
        category = category_service.create_category(
            db, info.context.identity, to_payload(input, drop_none=True)
        )
        return category_to_graphql(db, category)

    @strawberry.mutation(description="Admin: update a category; parentCategoryId null makes it a root")
    @in_threadpool
    def update_category(
        self,
        info: Info[GraphQLContext, None],
        id: int,
        input: CategoryUpdateInput,
    ) -> CategoryType:
        db = info.context.db
        category = category_service.update_category(db, info.context.identity, id, to_payload(input))
        return category_to_graphql(db, category)

    @strawberry.mutation(description="Admin: delete a category without books or subcategories")
    @in_threadpool
    def delete_category(self, info: Info[GraphQLContext, None], id: int) -> bool:
        return category_service.delete_category(info.context.db, info.context.identity, id)

    @strawberry.mutation(description="Admin: flip a category's active flag")
    @in_threadpool
    def toggle_category_status(self, info: Info[GraphQLContext, None], id: int) -> CategoryType:
        db = info.context.db
        return category_to_graphql(db, category_service.toggle_category_status(db, info.context.identity, id))

    @strawberry.mutation(description="Admin: flip a category's featured flag")
    @in_threadpool
    def toggle_category_featured(self, info: Info[GraphQLContext, None], id: int) -> CategoryType:
        db = info.context.db
        category = category_service.toggle_category_featured(db, info.context.identity, id)
        return category_to_graphql(db, category)

    @strawberry.mutation(description="Admin: apply the same update to several categories")
    @in_threadpool
    def bulk_update_categories(
        self,
        info: Info[GraphQLContext, None],
        ids: list[int],
        input: CategoryUpdateInput,
    ) -> list[CategoryType]:
        db = info.context.db
        categories = category_service.bulk_update_categories(
            db, info.context.identity, ids, to_payload(input)
        )
        return [category_to_graphql(db, c) for c in categories]

    @strawberry.mutation(description="Admin: delete several categories")
    @in_threadpool
    def bulk_delete_categories(self, info: Info[GraphQLContext, None], ids: list[int]) -> bool:
        return category_service.bulk_delete_categories(info.context.db, info.context.identity, ids)

    @strawberry.mutation(description="Admin: set sortOrder for several categories")
    @in_threadpool
    def reorder_categories(
        self,
        info: Info[GraphQLContext, None],
        category_orders: list[CategoryOrderInput],
    ) -> list[CategoryType]:
        db = info.context.db
        categories = category_service.reorder_categories(
            db, info.context.identity, to_payload(category_orders)
        )
        return [category_to_graphql(db, c) for c in categories]

    # =========================================================================
    # User Administration Mutations
    # =========================================================================

    @strawberry.mutation(description="Admin: create a user with any role")
    @in_threadpool
    def create_user(self, info: Info[GraphQLContext, None], input: CreateUserInput) -> UserType:
        user = user_service.create_user(
            info.context.db, info.context.identity, to_payload(input, drop_none=True)
        )
        return user_to_graphql(user)

    @strawberry.mutation(description="Admin: update a user")
    @in_threadpool
    def update_user(
        self,
        info: Info[GraphQLContext, None],
        id: int,
        input: AdminUpdateUserInput,
    ) -> UserType:
        user = user_service.update_user(info.context.db, info.context.identity, id, to_payload(input))
        return user_to_graphql(user)

    @strawberry.mutation(description="Admin: delete a user (not yourself)")
    @in_threadpool
    def delete_user(self, info: Info[GraphQLContext, None], id: int) -> bool:
        return user_service.delete_user(info.context.db, info.context.identity, id)

    @strawberry.mutation(description="Admin: flip a user's active flag (not your own)")
    @in_threadpool
    def toggle_user_status(self, info: Info[GraphQLContext, None], id: int) -> UserType:
        return user_to_graphql(user_service.toggle_user_status(info.context.db, info.context.identity, id))

    @strawberry.mutation(description="Admin: delete several users")
    @in_threadpool
    def bulk_delete_users(self, info: Info[GraphQLContext, None], ids: list[int]) -> bool:
        return user_service.bulk_delete_users(info.context.db, info.context.identity, ids)

    @strawberry.mutation(description="Admin: apply the same update to several users")
    @in_threadpool
    def bulk_update_users(
        self,
        info: Info[GraphQLContext, None],
        ids: list[int],
        input: AdminUpdateUserInput,
    ) -> list[UserType]:
        users = user_service.bulk_update_users(
            info.context.db, info.context.identity, ids, to_payload(input)
        )
        return [user_to_graphql(u) for u in users]
