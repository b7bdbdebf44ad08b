"""Tests for the birthday feed HTTP endpoint."""

import gzip
from unittest.mock import MagicMock, patch

import pytest

from bdayfeed import feed
from bdayfeed.cardav_client import CardDAVError
from bdayfeed.config import AddressBook, ConfigError
from bdayfeed.server import create_app

BOOKS = {
    "family": AddressBook(name="family", url="https://dav.example.com/family/", username="me", password="pw"),
}

MULTISTATUS = """<?xml version="1.0" encoding="utf-8"?>
<d:multistatus xmlns:d="DAV:" xmlns:card="urn:ietf:params:xml:ns:carddav">
  <d:response>
    <d:href>/family/jane.vcf</d:href>
    <d:propstat>
      <d:prop>
        <card:address-data>BEGIN:VCARD
FN:Jane Doe
BDAY:20030615
END:VCARD
</card:address-data>
      </d:prop>
    </d:propstat>
  </d:response>
</d:multistatus>
"""


@pytest.fixture()
def client():
    app = create_app(BOOKS, "secret", timeout=3)
    app.config["TESTING"] = True
    return app.test_client()


def test_healthz(client):
    resp = client.get("/healthz")
    assert resp.status_code == 200
    assert resp.get_json() == {"status": "ok", "address_books": 1}


def test_rejects_wrong_api_key(client, monkeypatch):
    fetch = MagicMock()
    monkeypatch.setattr(feed, "get_birthdays_and_generate_ics", fetch)

    resp = client.get("/family?apiKey=nope")
    assert resp.status_code == 401
    assert b"invalid api key" in resp.data
    fetch.assert_not_called()


def test_rejects_missing_api_key(client):
    assert client.get("/family").status_code == 401


def test_unknown_address_book(client):
    resp = client.get("/work?apiKey=secret")
    assert resp.status_code == 404
    assert b"address book work not found" in resp.data


def test_serves_calendar(client, monkeypatch):
    calls = []

    def fake_feed(book, timeout):
        calls.append((book, timeout))
        return "BEGIN:VCALENDAR\r\nEND:VCALENDAR\r\n"

    monkeypatch.setattr(feed, "get_birthdays_and_generate_ics", fake_feed)

    resp = client.get("/family?apiKey=secret")
    assert resp.status_code == 200
    assert resp.headers["Content-Type"] == "text/calendar; charset=utf-8"
    assert resp.headers["Content-Disposition"] == "filename=family-birthdays.ics"
    assert resp.data == b"BEGIN:VCALENDAR\r\nEND:VCALENDAR\r\n"
    assert calls == [(BOOKS["family"], 3)]


def test_api_key_from_form(client, monkeypatch):
    monkeypatch.setattr(feed, "get_birthdays_and_generate_ics", lambda book, timeout: "X\r\n")
    resp = client.post("/family", data={"apiKey": "secret"})
    assert resp.status_code == 200
    assert resp.data == b"X\r\n"


def test_upstream_failure(client, monkeypatch):
    def failing_feed(book, timeout):
        raise CardDAVError("unexpected status: 500", 500)

    monkeypatch.setattr(feed, "get_birthdays_and_generate_ics", failing_feed)

    resp = client.get("/family?apiKey=secret")
    assert resp.status_code == 502
    assert b"failed to get birthdays: unexpected status: 500" in resp.data


def test_end_to_end_with_stubbed_carddav(client):
    upstream = MagicMock(status_code=207, text=MULTISTATUS, content=MULTISTATUS.encode("utf-8"))
    with patch("requests.request", return_value=upstream) as request:
        resp = client.get("/family?apiKey=secret")

    assert resp.status_code == 200
    body = resp.data.decode("utf-8")
    assert "UID:JaneDoe-birthday-2003\r\n" in body
    assert "DTSTART;VALUE=DATE:20030615\r\n" in body
    assert body.startswith("BEGIN:VCALENDAR\r\n")
    assert body.endswith("END:VCALENDAR\r\n")
    assert request.call_args.args == ("REPORT", BOOKS["family"].url)
    assert request.call_args.kwargs["timeout"] == 3


def test_empty_api_key_is_refused():
    with pytest.raises(ConfigError):
        create_app(BOOKS, "")


def test_large_calendar_is_gzipped(client, monkeypatch):
    calendar = "BEGIN:VCALENDAR\r\n" + "SUMMARY:Jane Doe's Birthday\r\n" * 200 + "END:VCALENDAR\r\n"
    monkeypatch.setattr(feed, "get_birthdays_and_generate_ics", lambda book, timeout: calendar)

    resp = client.get("/family?apiKey=secret", headers={"Accept-Encoding": "gzip"})
    assert resp.status_code == 200
    assert resp.headers["Content-Encoding"] == "gzip"
    assert resp.headers["Content-Type"] == "text/calendar; charset=utf-8"
    assert gzip.decompress(resp.data).decode("utf-8") == calendar


def test_uncompressed_without_accept_encoding(client, monkeypatch):
    calendar = "BEGIN:VCALENDAR\r\n" + "SUMMARY:Jane Doe's Birthday\r\n" * 200 + "END:VCALENDAR\r\n"
    monkeypatch.setattr(feed, "get_birthdays_and_generate_ics", lambda book, timeout: calendar)

    resp = client.get("/family?apiKey=secret")
    assert "Content-Encoding" not in resp.headers
    assert resp.data.decode("utf-8") == calendar
