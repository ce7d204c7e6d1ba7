import pytest

from app.utils import redact_url


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://api.example.com/v1/items", "https://api.example.com/v1/items"),
        ("https://api.example.com/v1?token=secret", "https://api.example.com/v1?****"),
        ("https://user:pw@api.example.com/", "https://api.example.com/"),
        ("https://api.example.com:8443/#frag", "https://api.example.com:8443/"),
    ],
)
def test_redact_url(url, expected):
    assert redact_url(url) == expected


def test_redact_unparseable_url():
    assert redact_url("http://[::1") == "<unparseable url>"
