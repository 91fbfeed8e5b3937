import pytest

from app.core.identity import normalize_identity


@pytest.mark.parametrize(
    "address,expected",
    [
        ("5215555555555@s.whatsapp.net", "5215555555555"),
        ("+52 1 (555) 555-5555", "5215555555555"),
        ("5215555555555", "5215555555555"),
        ("Telegram.User", "telegramuser"),
    ],
)
def test_normalize_identity(address, expected):
    assert normalize_identity(address) == expected


@pytest.mark.parametrize("address", ["", "@s.whatsapp.net", " - ", None])
def test_unusable_address_raises(address):
    with pytest.raises(ValueError):
        normalize_identity(address)
