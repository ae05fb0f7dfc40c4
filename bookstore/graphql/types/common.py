"""
Shared GraphQL types for embedded documents (images, dimensions, address).
"""

import strawberry


@strawberry.type
class ImageType:
    url: str | None = None
    public_id: str | None = None
    alt: str | None = None
    is_main: bool = False


@strawberry.type
class MediaType:
    """Category image or user avatar."""

    url: str | None = None
    public_id: str | None = None


@strawberry.type
class DimensionsType:
    length: float | None = None
    width: float | None = None
    height: float | None = None


@strawberry.type
class AddressType:
    street: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    country: str | None = None


@strawberry.input
class ImageInput:
    url: str
    public_id: str | None = None
    alt: str | None = None
    is_main: bool = False


@strawberry.input
class CoverImageInput:
    url: str
    public_id: str | None = None
    alt: str | None = None


@strawberry.input
class MediaInput:
    url: str | None = None
    public_id: str | None = None


@strawberry.input
class DimensionsInput:
    length: float | None = None
    width: float | None = None
    height: float | None = None


@strawberry.input
class AddressInput:
    street: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    country: str | None = None


def image_from_json(data: dict | None) -> ImageType | None:
    if not data:
        return None
    return ImageType(
        url=data.get("url"),
        public_id=data.get("publicId"),
        alt=data.get("alt"),
        is_main=bool(data.get("isMain", False)),
    )


def media_from_json(data: dict | None) -> MediaType | None:
    if not data:
        return None
    return MediaType(url=data.get("url"), public_id=data.get("publicId"))


def dimensions_from_json(data: dict | None) -> DimensionsType | None:
    if not data:
        return None
    return DimensionsType(
        length=data.get("length"),
        width=data.get("width"),
        height=data.get("height"),
    )


def address_from_json(data: dict | None) -> AddressType | None:
    if not data:
        return None
    return AddressType(
        street=data.get("street"),
        city=data.get("city"),
        state=data.get("state"),
        zip_code=data.get("zipCode"),
        country=data.get("country"),
    )
