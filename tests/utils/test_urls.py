import pytest

from cadence_fed.core.settings import settings
from cadence_fed.utils.urls import is_url_safe


@pytest.mark.parametrize(
    "url",
    [
        "https://remote.example/users/bob",
        "http://remote.example/inbox",
        "https://93.184.216.34/users/bob",
    ],
)
def test_public_urls_are_safe(url):
    assert is_url_safe(url, allow_private=False) is True


@pytest.mark.parametrize(
    "url",
    [
        "http://169.254.169.254/latest/meta-data",
        "http://127.0.0.1:8080/admin",
        "http://10.0.0.5/users/bob",
        "http://172.16.4.2/inbox",
        "http://192.168.1.10/inbox",
        "http://[::1]/inbox",
        "http://[fe80::1]/inbox",
        "http://[fd00::1]/inbox",
        "http://[::ffff:127.0.0.1]/inbox",
        "http://0.0.0.0/inbox",
        "http://localhost/users/bob",
        "http://printer.local/inbox",
        "ftp://remote.example/users/bob",
        "file:///etc/passwd",
        "not a url",
        "http://[::1/inbox",
    ],
)
def test_internal_or_malformed_urls_are_unsafe(url):
    assert is_url_safe(url, allow_private=False) is False


def test_private_hosts_allowed_for_local_development():
    assert is_url_safe("http://localhost:8000/users/bob", allow_private=True) is True
    assert is_url_safe("http://127.0.0.1/inbox", allow_private=True) is True
    assert is_url_safe("ftp://localhost/inbox", allow_private=True) is False


def test_private_hosts_follow_settings(monkeypatch):
    monkeypatch.setattr(settings, "federation_allow_private_hosts", True)
    assert is_url_safe("http://localhost:8000/users/bob") is True

    monkeypatch.setattr(settings, "federation_allow_private_hosts", False)
    assert is_url_safe("http://localhost:8000/users/bob") is False
