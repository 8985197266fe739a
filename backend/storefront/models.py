# storefront/models.py
from sqlalchemy import (
    Column,
    Integer,
    String,
    Boolean,
    Text,
    Numeric,
    DateTime,
    Enum,
    ForeignKey,
    JSON,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class Category(Base):
    __tablename__ = "categories"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True, index=True)
    sort_order = Column(Integer, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    products = relationship("Product", back_populates="category")


class Product(Base):
    __tablename__ = "products"
    id = Column(Integer, primary_key=True, index=True)
    # Referenced by detail-page URLs; never rewritten once published.
    slug = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(1024), nullable=False)
    description = Column(Text, nullable=True)
    price_ttd = Column(Numeric(10, 2), nullable=False)
    is_new = Column(Boolean, nullable=False, default=False)
    on_sale = Column(Boolean, nullable=False, default=False)
    featured = Column(Boolean, nullable=False, default=False)
    in_stock = Column(Boolean, nullable=False, default=True)
    sizes = Column(JSON, nullable=True)
    colors = Column(JSON, nullable=True)
    tags = Column(JSON, nullable=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now(), index=True)

    category = relationship("Category", back_populates="products")
    media = relationship(
        "ProductMedia",
        back_populates="product",
        order_by="ProductMedia.sort_order",
        cascade="all, delete-orphan",
    )


class ProductMedia(Base):
    __tablename__ = "product_media"
    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    type = Column(Enum("image", "video", name="media_type"), nullable=False, default="image")
    url = Column(Text, nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    product = relationship("Product", back_populates="media")


class SiteSettings(Base):
    """Singleton business-configuration row, edited only from the admin side."""

    __tablename__ = "site_settings"
    id = Column(Integer, primary_key=True)
    site_name = Column(String(255), nullable=False)
    tagline = Column(String(1024), nullable=False, default="")
    location_1_name = Column(String(255), nullable=False, default="")
    location_1_address = Column(String(1024), nullable=False, default="")
    location_1_gmaps_url = Column(Text, nullable=False, default="")
    location_2_name = Column(String(255), nullable=False, default="")
    location_2_address = Column(String(1024), nullable=False, default="")
    location_2_gmaps_url = Column(Text, nullable=False, default="")
    phone_number = Column(String(64), nullable=False, default="")
    whatsapp_number = Column(String(64), nullable=False, default="")
    instagram_handle = Column(String(255), nullable=False, default="")
    opening_hours = Column(String(255), nullable=False, default="")
    announcement_banner = Column(Text, nullable=True)
    payments_enabled = Column(Boolean, nullable=False, default=False)


class Inquiry(Base):
    __tablename__ = "inquiries"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    contact = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
