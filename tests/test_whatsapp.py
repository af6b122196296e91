import pytest

from catalog.utils.whatsapp import (
    build_item_contact_link,
    build_whatsapp_link,
    encode_text,
    normalize_phone,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("+55 (41) 99999-9999", "5541999999999"),
        ("5541999999999", "5541999999999"),
        ("abc", ""),
        ("", ""),
        (None, ""),
        ("+٥٥ 41 9999", "419999"),
        ("４１ 9999-9999", "99999999"),
    ],
)
def test_normalize_phone(raw, expected):
    assert normalize_phone(raw) == expected


def test_encode_text_matches_uri_component_rules():
    assert encode_text("a b&c=d/é") == "a%20b%26c%3Dd%2F%C3%A9"
    assert encode_text("-_.!~*'()") == "-_.!~*'()"


def test_listing_link_uses_default_message_and_title():
    link_for = build_whatsapp_link("+55 (41) 99999-9999", "")
    assert link_for("Faca Chef") == (
        "https://wa.me/5541999999999?text=Ol%C3%A1!%20Tenho%20interesse.%20-%20Produto%3A%20Faca%20Chef"
    )


def test_listing_link_prefers_configured_message():
    link_for = build_whatsapp_link("41 9999", "Oi")
    assert link_for("Bowie") == "https://wa.me/419999?text=Oi%20-%20Produto%3A%20Bowie"


def test_item_contact_link_appends_item_message():
    link = build_item_contact_link("+55 41 99999-9999", "nesta faca")
    assert link == "https://wa.me/5541999999999?text=Ol%C3%A1!%20Tenho%20interesse%2C%20nesta%20faca"


def test_item_contact_link_without_message_keeps_prefix():
    link = build_item_contact_link("", None)
    assert link == "https://wa.me/?text=Ol%C3%A1!%20Tenho%20interesse%2C%20"
