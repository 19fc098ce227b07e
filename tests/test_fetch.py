"""Tests de descargas con una sesión de requests simulada."""

from unittest.mock import MagicMock

import requests

from vpnkit.providers.fetch import RequestsFetcher


def make_session(response):
    session = MagicMock(spec=requests.Session)
    session.get.return_value.__enter__.return_value = response
    return session


def test_download_writes_file(tmp_path):
    response = MagicMock()
    response.iter_content.return_value = [b"abc", b"", b"def"]
    fetcher = RequestsFetcher(timeout=5, session=make_session(response))

    target = tmp_path / "sub" / "a.ipk"
    assert fetcher.download("https://example.org/a.ipk", target)

    assert target.read_bytes() == b"abcdef"
    fetcher.session.get.assert_called_once_with(
        "https://example.org/a.ipk", stream=True, timeout=5, allow_redirects=True
    )


def test_download_http_error_removes_partial(tmp_path):
    error_response = MagicMock(status_code=404)
    response = MagicMock()
    response.raise_for_status.side_effect = requests.exceptions.HTTPError(response=error_response)
    fetcher = RequestsFetcher(session=make_session(response))

    target = tmp_path / "a.ipk"
    target.write_bytes(b"old")
    assert not fetcher.download("https://example.org/a.ipk", target)

    assert not target.exists()
    assert fetcher.last_error == "HTTP 404"


def test_download_connection_error(tmp_path):
    session = MagicMock(spec=requests.Session)
    session.get.side_effect = requests.exceptions.ConnectionError()
    fetcher = RequestsFetcher(session=session)

    assert not fetcher.download("https://example.org/a.ipk", tmp_path / "a.ipk")
    assert fetcher.last_error == "Error de conexión"


def test_latest_release_tag():
    session = MagicMock(spec=requests.Session)
    session.get.return_value = MagicMock(status_code=200, json=lambda: {"tag_name": "v1.9.0"})
    fetcher = RequestsFetcher(session=session)

    assert fetcher.latest_release_tag("Zephyruso/zashboard") == "v1.9.0"
    assert session.get.call_args.args[0] == "https://api.github.com/repos/Zephyruso/zashboard/releases/latest"


def test_latest_release_tag_error():
    session = MagicMock(spec=requests.Session)
    session.get.return_value = MagicMock(status_code=403, text="rate limited")
    fetcher = RequestsFetcher(session=session)

    assert fetcher.latest_release_tag("Zephyruso/zashboard") is None
    assert "403" in fetcher.last_error
