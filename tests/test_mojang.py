"""Tests for the Mojang name -> UUID resolver."""

from unittest.mock import MagicMock

import requests

from zombiesoverlay.mojang import PROFILE_URL, MojangClient


def make_response(status=200, body=None, json_error=False):
    response = MagicMock()
    response.status_code = status
    if json_error:
        response.json.side_effect = ValueError("not json")
    else:
        response.json.return_value = body
    return response


def make_client(*responses, **kwargs):
    session = MagicMock()
    session.get.side_effect = list(responses)
    return MojangClient(session=session, **kwargs), session


class TestMojangClient:

    def test_resolves_uuid(self):
        client, session = make_client(make_response(body={"id": "abc123", "name": "Notch"}))
        assert client.get_uuid("Notch") == "abc123"
        assert session.get.call_args.args[0] == PROFILE_URL.format(name="Notch")

    def test_cached_case_insensitive(self):
        client, session = make_client(make_response(body={"id": "abc123"}))
        client.get_uuid("Notch")
        assert client.get_uuid("notch") == "abc123"
        assert session.get.call_count == 1

    def test_not_found_is_cached(self):
        """204 and 404 both mean no such player and are remembered."""
        client, session = make_client(make_response(status=204), make_response(status=404))
        assert client.get_uuid("Nobody") is None
        assert client.get_uuid("Nobody") is None
        assert session.get.call_count == 1

        assert client.get_uuid("Ghost") is None

    def test_server_error_not_cached(self):
        client, session = make_client(
            make_response(status=500), make_response(body={"id": "abc123"})
        )
        assert client.get_uuid("Notch") is None
        assert client.get_uuid("Notch") == "abc123"

    def test_network_error(self):
        client, _ = make_client(requests.Timeout("slow"))
        assert client.get_uuid("Notch") is None

    def test_invalid_json(self):
        client, _ = make_client(make_response(json_error=True))
        assert client.get_uuid("Notch") is None

    def test_missing_id(self):
        client, _ = make_client(make_response(body={"name": "Notch"}))
        assert client.get_uuid("Notch") is None

    def test_empty_name(self):
        client, session = make_client()
        assert client.get_uuid("") is None
        session.get.assert_not_called()

    def test_cache_expiry(self):
        client, session = make_client(
            make_response(body={"id": "abc"}), make_response(body={"id": "def"}), cache_ttl=0
        )
        assert client.get_uuid("Notch") == "abc"
        assert client.get_uuid("Notch") == "def"

    def test_clear_cache(self):
        client, session = make_client(
            make_response(body={"id": "abc"}), make_response(body={"id": "abc"})
        )
        client.get_uuid("Notch")
        client.clear_cache()
        client.get_uuid("Notch")
        assert session.get.call_count == 2
