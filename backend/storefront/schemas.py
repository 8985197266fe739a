# storefront/schemas.py
from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Literal

from pydantic import BaseModel, ConfigDict, Field

PLACEHOLDER_IMAGE_URL = "https://picsum.photos/seed/1/600/800"


class CategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    sort_order: Optional[int] = None


class MediaOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: Literal["image", "video"]
    url: str
    sort_order: int = 0


class ProductOut(BaseModel):
    id: int
    slug: str
    name: str
    description: Optional[str] = None
    price_ttd: Decimal
    is_new: bool = False
    on_sale: bool = False
    featured: bool = False
    in_stock: bool = True
    sizes: List[str] = []
    colors: List[str] = []
    tags: List[str] = []
    category_slug: Optional[str] = None
    category_name: Optional[str] = None
    media: List[MediaOut] = []
    created_at: Optional[datetime] = None

    @property
    def thumbnail_url(self) -> str:
        return self.media[0].url if self.media else PLACEHOLDER_IMAGE_URL

    @property
    def gallery(self) -> List[MediaOut]:
        if self.media:
            return self.media
        return [MediaOut(id=0, type="image", url=PLACEHOLDER_IMAGE_URL)]

    @classmethod
    def from_model(cls, product) -> "ProductOut":
        category = product.category
        return cls(
            id=product.id,
            slug=product.slug,
            name=product.name,
            description=product.description,
            price_ttd=product.price_ttd,
            is_new=bool(product.is_new),
            on_sale=bool(product.on_sale),
            featured=bool(product.featured),
            in_stock=bool(product.in_stock),
            sizes=product.sizes or [],
            colors=product.colors or [],
            tags=product.tags or [],
            category_slug=category.slug if category is not None else None,
            category_name=category.name if category is not None else None,
            media=[MediaOut.model_validate(m) for m in product.media],
            created_at=product.created_at,
        )


class ProductPageOut(BaseModel):
    items: List[ProductOut]
    page: int
    page_size: int
    has_more: bool


class SiteSettingsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int = 1
    site_name: str
    tagline: str
    location_1_name: str
    location_1_address: str
    location_1_gmaps_url: str
    location_2_name: str
    location_2_address: str
    location_2_gmaps_url: str
    phone_number: str
    whatsapp_number: str
    instagram_handle: str
    opening_hours: str
    announcement_banner: Optional[str] = None
    payments_enabled: bool = False


class InquiryCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=255)
    contact: str = Field(..., min_length=1, max_length=255, description="Email or phone")
    message: str = Field(..., min_length=1, max_length=5000)
