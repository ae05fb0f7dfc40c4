"""
Shared embedded-document schemas.

These mirror the JSON columns on the models; services store them with
model_dump(by_alias=True) so the stored keys match the API field names.
"""

from pydantic import BaseModel, ConfigDict, Field


class ImageSchema(BaseModel):
    """One entry of a book's image gallery."""

    model_config = ConfigDict(populate_by_name=True)

    url: str = Field(..., min_length=1)
    public_id: str | None = Field(default=None, alias="publicId")
    alt: str | None = None
    is_main: bool = Field(default=False, alias="isMain")


class CoverImageSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: str = Field(..., min_length=1)
    public_id: str | None = Field(default=None, alias="publicId")
    alt: str | None = None


class MediaSchema(BaseModel):
    """Category image or user avatar."""

    model_config = ConfigDict(populate_by_name=True)

    url: str | None = None
    public_id: str | None = Field(default=None, alias="publicId")


class DimensionsSchema(BaseModel):
    length: float | None = Field(default=None, ge=0)
    width: float | None = Field(default=None, ge=0)
    height: float | None = Field(default=None, ge=0)


class AddressSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    street: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = Field(default=None, alias="zipCode")
    country: str | None = None
