# storefront/site_config.py
from typing import List, Optional

from pydantic import BaseModel


class Link(BaseModel):
    label: str
    href: str


class AnnouncementMessage(BaseModel):
    text: str
    href: str


class HeroSlide(BaseModel):
    title: str
    subtitle: str
    category_name: str
    image_url: str
    image_hint: Optional[str] = None
    primary_cta: Link
    secondary_cta: Link


class AnnouncementConfig(BaseModel):
    rotate_interval_ms: int
    messages: List[AnnouncementMessage]


class HeroSliderConfig(BaseModel):
    rotate_interval_ms: int
    slides: List[HeroSlide]


_IMG = "crop=entropy&cs=tinysrgb&fit=max&fm=jpg&ixlib=rb-4.0.3&q=80&w=1920"

ANNOUNCEMENTS = AnnouncementConfig(
    rotate_interval_ms=6000,
    messages=[
        AnnouncementMessage(text="NEW DROP: The Latest Styles Just Landed", href="/products?is_new=true"),
        AnnouncementMessage(text="SALE PICKS: Up to 40% Off Select Items", href="/products?on_sale=true"),
        AnnouncementMessage(text="Reserve Your Size on WhatsApp & Collect In-Store", href="/contact"),
    ],
)

HERO_SLIDES = HeroSliderConfig(
    rotate_interval_ms=5000,
    slides=[
        HeroSlide(
            title="Step into Style",
            subtitle="Discover statement heels that elevate any look, from brunch to night out.",
            category_name="Heels",
            image_url=f"https://images.unsplash.com/photo-1590099033615-77535a093392?{_IMG}",
            image_hint="fashion heels",
            primary_cta=Link(label="Shop Heels", href="/products?category=heels"),
            secondary_cta=Link(label="View All", href="/products"),
        ),
        HeroSlide(
            title="Summer Essentials",
            subtitle="Effortless style from beach to street with our latest collection of sandals.",
            category_name="Sandals",
            image_url=f"https://images.unsplash.com/photo-1603487742131-4114194581aa?{_IMG}",
            image_hint="fashion sandals",
            primary_cta=Link(label="Shop Sandals", href="/products?category=sandals"),
            secondary_cta=Link(label="View All", href="/products"),
        ),
        HeroSlide(
            title="The Perfect Carryall",
            subtitle="Find your new favorite bag. Totes, crossbodies, and clutches for every occasion.",
            category_name="Bags",
            image_url=f"https://images.unsplash.com/photo-1590779032545-9e658f330b6c?{_IMG}",
            image_hint="fashion bags",
            primary_cta=Link(label="Shop Bags", href="/products?category=bags"),
            secondary_cta=Link(label="View All", href="/products"),
        ),
        HeroSlide(
            title="Fresh Kicks",
            subtitle="Upgrade your sneaker game with the latest drops and timeless classics.",
            category_name="Sneakers",
            image_url=f"https://images.unsplash.com/photo-1595950653106-6c9ebd614d3a?{_IMG}",
            image_hint="fashion sneakers",
            primary_cta=Link(label="Shop Sneakers", href="/products?category=sneakers"),
            secondary_cta=Link(label="View All", href="/products"),
        ),
        HeroSlide(
            title="Finishing Touches",
            subtitle="Complete your look with our curated collection of must-have accessories.",
            category_name="Accessories",
            image_url=f"https://images.unsplash.com/photo-1606525442425-4b95c95a4358?{_IMG}",
            image_hint="fashion accessories",
            primary_cta=Link(label="Shop Accessories", href="/products?category=accessories"),
            secondary_cta=Link(label="View All", href="/products"),
        ),
    ],
)

CATEGORY_CHIPS = [
    Link(label="Heels", href="/products?category=heels"),
    Link(label="Sandals", href="/products?category=sandals"),
    Link(label="Sneakers", href="/products?category=sneakers"),
    Link(label="Bags", href="/products?category=bags"),
    Link(label="Accessories", href="/products?category=accessories"),
    Link(label="New Arrivals", href="/products?is_new=true"),
    Link(label="Sale", href="/products?on_sale=true"),
]

NAV_LINKS = [
    Link(label="Home", href="/"),
    Link(label="Shop All", href="/products"),
    Link(label="New Arrivals", href="/products?sort=newest"),
    Link(label="On Sale", href="/products?on_sale=true"),
    Link(label="Contact", href="/contact"),
]

FOOTER_SHOP_LINKS = [
    Link(label="New Arrivals", href="/products?sort=newest"),
    Link(label="Heels", href="/products?category=heels"),
    Link(label="Sandals", href="/products?category=sandals"),
    Link(label="Bags", href="/products?category=bags"),
]

FOOTER_COMPANY_LINKS = [
    Link(label="About Us", href="/#why-us"),
    Link(label="Contact", href="/contact"),
    Link(label="Store Locations", href="/#store-info"),
]
