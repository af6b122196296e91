"""
WhatsApp deep links.

Two call sites compose the message differently and are kept apart on purpose:
the listing API appends the product title to the site-wide message, the card
and gallery modal send the item's own message without the title.
"""
import re
from typing import Callable, Optional
from urllib.parse import quote

WHATSAPP_BASE_URL = "https://wa.me/"
DEFAULT_MESSAGE = "Olá! Tenho interesse."
ITEM_CONTACT_PREFIX = "Olá! Tenho interesse, "

# Characters encodeURIComponent leaves untouched, besides alphanumerics
_URI_COMPONENT_SAFE = "-_.!~*'()"

_NON_DIGITS = re.compile(r"[^0-9]")


def normalize_phone(phone_raw: Optional[str]) -> str:
    """Strip every character but ASCII digits. Malformed numbers are not rejected."""
    return _NON_DIGITS.sub("", phone_raw or "")


def encode_text(text: str) -> str:
    return quote(text, safe=_URI_COMPONENT_SAFE)


def _link(phone: str, text: str) -> str:
    return f"{WHATSAPP_BASE_URL}{phone}?text={encode_text(text)}"


def build_whatsapp_link(
    phone_raw: Optional[str],
    message: Optional[str],
    default_message: str = DEFAULT_MESSAGE,
) -> Callable[[str], str]:
    """
    Build a link factory for the site-wide message.

    The returned callable takes an item title and produces a link whose text is
    ``"<message or default> - Produto: <title>"``.
    """
    clean = normalize_phone(phone_raw)
    base_text = message or default_message

    def for_title(title: str) -> str:
        return _link(clean, f"{base_text} - Produto: {title}")

    return for_title


def build_item_contact_link(phone_raw: Optional[str], item_message: Optional[str]) -> str:
    """Link used by the product card and gallery modal; the title is not appended."""
    return _link(normalize_phone(phone_raw), f"{ITEM_CONTACT_PREFIX}{item_message or ''}")
