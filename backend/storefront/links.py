# storefront/links.py
"""Outbound ordering links. Checkout is a pre-filled WhatsApp or Instagram message."""
from typing import Optional
from urllib.parse import quote


def whatsapp_link(number: str, message: Optional[str] = None) -> str:
    url = f"https://wa.me/{number}"
    if message:
        url += "?text=" + quote(message, safe="!'()*")
    return url


def instagram_link(handle: str) -> str:
    return f"https://instagram.com/{handle}"


def product_order_message(product) -> str:
    return f"Hi! I'm interested in the {product.name} (slug: {product.slug})."


def quick_view_message(product) -> str:
    return f"Hi! I'm interested in the {product.name}."


def product_whatsapp_link(settings, product) -> str:
    return whatsapp_link(settings.whatsapp_number, product_order_message(product))


def phone_link(number: str) -> str:
    return f"tel:{number}"
