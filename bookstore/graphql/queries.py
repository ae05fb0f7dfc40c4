"""
GraphQL Query Resolvers

Defines all read operations (queries) for the GraphQL API.
Resolvers stay thin: they pull the session and caller identity from the
context, call into the service layer and convert ORM rows to GraphQL
types. Each one is blocking code wrapped with in_threadpool, so database
round-trips run off the event loop. Service errors propagate and end up in
the response's `errors`.
"""

import strawberry
from sqlalchemy import select
from sqlalchemy.orm import Session
from strawberry.types import Info

from bookstore.graphql.context import GraphQLContext
from bookstore.graphql.types.book import (
    BookCategoryType,
    BookConnection,
    BookFilterInput,
    BookStatsType,
    BookType,
)
from bookstore.graphql.types.category import (
    CategoryConnection,
    CategoryFilterInput,
    CategoryHierarchyType,
    CategoryRefType,
    CategoryStatsType,
    CategoryType,
)
from bookstore.graphql.types.common import (
    address_from_json,
    dimensions_from_json,
    image_from_json,
    media_from_json,
)
from bookstore.graphql.types.user import AuthPayload, UserConnection, UserFilterInput, UserStatsType, UserType
from bookstore.graphql.utils import in_threadpool, to_payload
from bookstore.models import Book, Category, User
from bookstore.services import books as book_service
from bookstore.services import categories as category_service
from bookstore.services import users as user_service
from bookstore.services.categories import CategoryNode
from bookstore.services.pagination import ADMIN_PAGE_SIZE, DEFAULT_PAGE_SIZE, Page
from bookstore.services.users import AuthResult


# =============================================================================
# Converters
# =============================================================================

def page_fields(page: Page) -> dict:
    """Page-boundary fields shared by every connection type."""
    return {
        "total_count": page.total_count,
        "has_next_page": page.has_next_page,
        "has_previous_page": page.has_previous_page,
        "current_page": page.current_page,
        "total_pages": page.total_pages,
    }


def book_to_graphql(book: Book) -> BookType:
    """Convert SQLAlchemy Book model to GraphQL BookType."""
    category = None
    if book.category is not None:
        category = BookCategoryType(
            id=book.category.id,
            name=book.category.name,
            slug=book.category.slug,
            description=book.category.description,
        )

    return BookType(
        id=book.id,
        title=book.title,
        author=book.author,
        description=book.description,
        price=float(book.price),
        language=book.language,
        format=book.format,
        slug=book.slug,
        url=book.url,
        isbn=book.isbn,
        original_price=float(book.original_price) if book.original_price is not None else None,
        category=category,
        publisher=book.publisher,
        published_year=book.published_year,
        pages=book.pages,
        dimensions=dimensions_from_json(book.dimensions),
        weight=book.weight,
        images=[image_from_json(image) for image in (book.images or []) if image],
        cover_image=image_from_json(book.cover_image),
        stock=book.stock or 0,
        sold=book.sold or 0,
        rating=float(book.rating or 0),
        review_count=book.review_count or 0,
        is_active=book.is_active,
        is_featured=book.is_featured,
        is_on_sale=book.is_on_sale,
        sale_start_date=book.sale_start_date,
        sale_end_date=book.sale_end_date,
        tags=sorted(book.tags),
        meta_title=book.meta_title,
        meta_description=book.meta_description,
        keywords=list(book.keywords or []),
        view_count=book.view_count or 0,
        wishlist_count=book.wishlist_count or 0,
        discount_percentage=book.discount_percentage,
        in_stock=book.in_stock,
        on_sale=book.on_sale,
        created_at=book.created_at,
        updated_at=book.updated_at,
    )


def category_ref(category: Category) -> CategoryRefType:
    return CategoryRefType(
        id=category.id,
        name=category.name,
        slug=category.slug,
        is_active=category.is_active,
    )


def category_to_graphql(db: Session, category: Category) -> CategoryType:
    """
    Convert SQLAlchemy Category model to GraphQL CategoryType.

    The parent and the children listed in sub_categories are resolved to
    references; ids that no longer exist are skipped.
    """
    parent = None
    if category.parent_category_id is not None:
        parent_row = db.get(Category, category.parent_category_id)
        if parent_row is not None:
            parent = category_ref(parent_row)

    children = []
    sub_ids = list(category.sub_categories or [])
    if sub_ids:
        rows = db.execute(select(Category).where(Category.id.in_(sub_ids))).scalars().all()
        by_id = {row.id: row for row in rows}
        children = [category_ref(by_id[sub_id]) for sub_id in sub_ids if sub_id in by_id]

    return CategoryType(
        id=category.id,
        name=category.name,
        slug=category.slug,
        url=category.url,
        description=category.description,
        image=media_from_json(category.image),
        parent_category=parent,
        sub_categories=children,
        book_count=category.book_count or 0,
        is_active=category.is_active,
        is_featured=category.is_featured,
        sort_order=category.sort_order or 0,
        meta_title=category.meta_title,
        meta_description=category.meta_description,
        keywords=list(category.keywords or []),
        created_at=category.created_at,
        updated_at=category.updated_at,
    )


def hierarchy_to_graphql(db: Session, node: CategoryNode) -> CategoryHierarchyType:
    root = node.category
    return CategoryHierarchyType(
        id=root.id,
        name=root.name,
        slug=root.slug,
        url=root.url,
        description=root.description,
        image=media_from_json(root.image),
        book_count=root.book_count or 0,
        is_featured=root.is_featured,
        sort_order=root.sort_order or 0,
        children=[category_to_graphql(db, child) for child in node.children],
    )


def user_to_graphql(user: User) -> UserType:
    """Convert SQLAlchemy User model to GraphQL UserType (no password)."""
    return UserType(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        phone=user.phone,
        address=address_from_json(user.address),
        full_address=user.full_address,
        avatar=media_from_json(user.avatar),
        date_of_birth=user.date_of_birth,
        gender=user.gender,
        is_active=user.is_active,
        is_email_verified=user.is_email_verified,
        last_login=user.last_login,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


def auth_to_graphql(result: AuthResult) -> AuthPayload:
    return AuthPayload(
        token=result.token,
        user=user_to_graphql(result.user),
        expires_in=result.expires_in,
    )


def filter_payload(value) -> dict | None:
    if value is None:
        return None
    return to_payload(value, drop_none=True)


# =============================================================================
# Query Type
# =============================================================================

@strawberry.type
class Query:
    """
    GraphQL Query type containing all read operations.

    All resolvers receive an `info` parameter that contains the GraphQL
    context with the database session and the caller identity.
    """

    # =========================================================================
    # Books
    # =========================================================================

    @strawberry.field(description="Get a paginated list of active books")
    @in_threadpool
    def books(
        self,
        info: Info[GraphQLContext, None],
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        filter: BookFilterInput | None = None,
        search: str | None = None,
        sort_by: str = "CREATED_AT",
        sort_order: str = "DESC",
    ) -> BookConnection:
        """
        Get active books with optional filtering, search and sorting.

        With a search term results are ranked by relevance first.
        """
        result = book_service.list_books(
            info.context.db,
            page=page,
            limit=limit,
            filters=filter_payload(filter),
            search=search,
            sort_by=sort_by,
            sort_order=sort_order,
        )
        return BookConnection(books=[book_to_graphql(b) for b in result.items], **page_fields(result))

    @strawberry.field(description="Get a single book by ID")
    @in_threadpool
    def book(self, info: Info[GraphQLContext, None], id: int) -> BookType:
        return book_to_graphql(book_service.get_book(info.context.db, id))

    @strawberry.field(description="Get an active book by its slug")
    @in_threadpool
    def book_by_slug(self, info: Info[GraphQLContext, None], slug: str) -> BookType:
        return book_to_graphql(book_service.get_book_by_slug(info.context.db, slug))

    @strawberry.field(description="Get featured books")
    @in_threadpool
    def featured_books(self, info: Info[GraphQLContext, None], limit: int = 8) -> list[BookType]:
        return [book_to_graphql(b) for b in book_service.featured_books(info.context.db, limit)]

    @strawberry.field(description="Get active books in a category")
    @in_threadpool
    def books_by_category(
        self,
        info: Info[GraphQLContext, None],
        category_id: int,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        sort_by: str = "CREATED_AT",
        sort_order: str = "DESC",
    ) -> BookConnection:
        result = book_service.books_by_category(
            info.context.db,
            category_id,
            page=page,
            limit=limit,
            sort_by=sort_by,
            sort_order=sort_order,
        )
        return BookConnection(books=[book_to_graphql(b) for b in result.items], **page_fields(result))

    @strawberry.field(description="Relevance-ranked search over active books")
    @in_threadpool
    def search_books(
        self,
        info: Info[GraphQLContext, None],
        query: str,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        filter: BookFilterInput | None = None,
    ) -> BookConnection:
        result = book_service.search_books(
            info.context.db,
            query,
            page=page,
            limit=limit,
            filters=filter_payload(filter),
        )
        return BookConnection(books=[book_to_graphql(b) for b in result.items], **page_fields(result))

    @strawberry.field(description="Books in the same category or sharing a tag")
    @in_threadpool
    def related_books(
        self,
        info: Info[GraphQLContext, None],
        book_id: int,
        limit: int = 4,
    ) -> list[BookType]:
        return [book_to_graphql(b) for b in book_service.related_books(info.context.db, book_id, limit)]

    @strawberry.field(description="Admin: every book, inactive included")
    @in_threadpool
    def all_books(
        self,
        info: Info[GraphQLContext, None],
        page: int = 1,
        limit: int = ADMIN_PAGE_SIZE,
        filter: BookFilterInput | None = None,
        search: str | None = None,
        sort_by: str = "CREATED_AT",
        sort_order: str = "DESC",
    ) -> BookConnection:
        result = book_service.list_all_books(
            info.context.db,
            info.context.identity,
            page=page,
            limit=limit,
            filters=filter_payload(filter),
            search=search,
            sort_by=sort_by,
            sort_order=sort_order,
        )
        return BookConnection(books=[book_to_graphql(b) for b in result.items], **page_fields(result))

    @strawberry.field(description="Catalog-wide book statistics")
    @in_threadpool
    def book_stats(self, info: Info[GraphQLContext, None]) -> BookStatsType:
        stats = book_service.book_stats(info.context.db)
        return BookStatsType(**vars(stats))

    # =========================================================================
    # Categories
    # =========================================================================

    @strawberry.field(description="List categories, optionally filtered")
    @in_threadpool
    def categories(
        self,
        info: Info[GraphQLContext, None],
        filter: CategoryFilterInput | None = None,
    ) -> list[CategoryType]:
        db = info.context.db
        rows = category_service.list_categories(db, filter_payload(filter))
        return [category_to_graphql(db, c) for c in rows]

    @strawberry.field(description="Get a single category by ID")
    @in_threadpool
    def category(self, info: Info[GraphQLContext, None], id: int) -> CategoryType:
        db = info.context.db
        return category_to_graphql(db, category_service.get_category(db, id))

    @strawberry.field(description="Get an active category by its slug")
    @in_threadpool
    def category_by_slug(self, info: Info[GraphQLContext, None], slug: str) -> CategoryType:
        db = info.context.db
        return category_to_graphql(db, category_service.get_category_by_slug(db, slug))

    @strawberry.field(description="All active categories")
    @in_threadpool
    def active_categories(self, info: Info[GraphQLContext, None]) -> list[CategoryType]:
        db = info.context.db
        return [category_to_graphql(db, c) for c in category_service.active_categories(db)]

    @strawberry.field(description="Featured active categories")
    @in_threadpool
    def featured_categories(
        self,
        info: Info[GraphQLContext, None],
        limit: int = 6,
    ) -> list[CategoryType]:
        db = info.context.db
        return [category_to_graphql(db, c) for c in category_service.featured_categories(db, limit)]

    @strawberry.field(description="Active root categories with their active children")
    @in_threadpool
    def category_hierarchy(self, info: Info[GraphQLContext, None]) -> list[CategoryHierarchyType]:
        db = info.context.db
        return [hierarchy_to_graphql(db, node) for node in category_service.category_hierarchy(db)]

    @strawberry.field(description="Breadcrumb from the root category down to this one")
    @in_threadpool
    def category_path(self, info: Info[GraphQLContext, None], id: int) -> list[CategoryType]:
        db = info.context.db
        return [category_to_graphql(db, c) for c in category_service.category_path(db, id)]

    @strawberry.field(description="Admin: paginated list of every category")
    @in_threadpool
    def all_categories(
        self,
        info: Info[GraphQLContext, None],
        page: int = 1,
        limit: int = ADMIN_PAGE_SIZE,
        filter: CategoryFilterInput | None = None,
        search: str | None = None,
    ) -> CategoryConnection:
        db = info.context.db
        result = category_service.all_categories(
            db,
            info.context.identity,
            page=page,
            limit=limit,
            filters=filter_payload(filter),
            search=search,
        )
        return CategoryConnection(
            categories=[category_to_graphql(db, c) for c in result.items],
            **page_fields(result),
        )

    @strawberry.field(description="Category statistics")
    @in_threadpool
    def category_stats(self, info: Info[GraphQLContext, None]) -> CategoryStatsType:
        stats = category_service.category_stats(info.context.db)
        return CategoryStatsType(**vars(stats))

    # =========================================================================
    # Users
    # =========================================================================

    @strawberry.field(description="Get the current authenticated user")
    @in_threadpool
    def me(self, info: Info[GraphQLContext, None]) -> UserType:
        return user_to_graphql(user_service.me(info.context.db, info.context.identity))

    @strawberry.field(description="Admin: paginated list of users")
    @in_threadpool
    def users(
        self,
        info: Info[GraphQLContext, None],
        page: int = 1,
        limit: int = ADMIN_PAGE_SIZE,
        filter: UserFilterInput | None = None,
        search: str | None = None,
        sort_by: str = "createdAt",
        sort_order: str = "desc",
    ) -> UserConnection:
        result = user_service.list_users(
            info.context.db,
            info.context.identity,
            page=page,
            limit=limit,
            filters=filter_payload(filter),
            search=search,
            sort_by=sort_by,
            sort_order=sort_order,
        )
        return UserConnection(users=[user_to_graphql(u) for u in result.items], **page_fields(result))

    @strawberry.field(description="Get a user by ID (owner or admin)")
    @in_threadpool
    def user(self, info: Info[GraphQLContext, None], id: int) -> UserType:
        return user_to_graphql(user_service.get_user(info.context.db, info.context.identity, id))

    @strawberry.field(description="Admin: user statistics")
    @in_threadpool
    def user_stats(self, info: Info[GraphQLContext, None]) -> UserStatsType:
        stats = user_service.user_stats(info.context.db, info.context.identity)
        return UserStatsType(**vars(stats))
