import itertools
from unittest.mock import MagicMock, patch

import pytest
import requests

from i18n_backup.clients.locize_client import LocizeClient
from i18n_backup.exceptions import FetchFailure


def _response(body: bytes, status_code: int = 200):
  response = MagicMock()
  response.status_code = status_code
  response.iter_content.side_effect = lambda chunk_size=None: iter([body[i:i + 4] for i in range(0, len(body), 4)] or [b""])
  if status_code >= 400:
    response.raise_for_status.side_effect = requests.HTTPError(response=response)
  return response


def test_public_url_without_api_key():
  client = LocizeClient("proj-1", base_url="https://api.locize.app/")
  assert client.namespace_url("en", "frontend") == "https://api.locize.app/proj-1/latest/en/frontend"


def test_private_url_with_api_key():
  client = LocizeClient("proj-1", api_key="key")
  assert client.namespace_url("de", "backend", "production") == "https://api.locize.app/private/proj-1/production/de/backend"


def test_download_namespace_sends_auth_and_timeout():
  client = LocizeClient("proj-1", api_key="key", timeout_seconds=12)
  with patch("i18n_backup.clients.locize_client.requests.get", return_value=_response(b'{"title": "Hallo"}')) as get:
    data = client.download_namespace("de", "frontend")
  assert data == {"title": "Hallo"}
  args, kwargs = get.call_args
  assert args[0] == "https://api.locize.app/private/proj-1/latest/de/frontend"
  assert kwargs["headers"]["Authorization"] == "Bearer key"
  assert kwargs["timeout"] == 12
  assert kwargs["stream"] is True


def test_empty_object_is_accepted():
  client = LocizeClient("proj-1")
  with patch("i18n_backup.clients.locize_client.requests.get", return_value=_response(b"{}")):
    assert client.download_namespace("en", "frontend") == {}


@pytest.mark.parametrize("body", [b"", b"   ", b"{not json", b'["a", "b"]', b"null"])
def test_invalid_payloads_raise(body):
  client = LocizeClient("proj-1")
  with patch("i18n_backup.clients.locize_client.requests.get", return_value=_response(body)):
    with pytest.raises(FetchFailure):
      client.download_namespace("en", "frontend")


def test_http_error_raises():
  client = LocizeClient("proj-1")
  with patch("i18n_backup.clients.locize_client.requests.get", return_value=_response(b"not found", 404)):
    with pytest.raises(FetchFailure, match="HTTP 404"):
      client.download_namespace("en", "frontend")


def test_timeout_raises():
  client = LocizeClient("proj-1", timeout_seconds=3)
  with patch("i18n_backup.clients.locize_client.requests.get", side_effect=requests.Timeout()):
    with pytest.raises(FetchFailure, match="Timed out after 3s"):
      client.download_namespace("en", "frontend")


def test_connection_error_raises():
  client = LocizeClient("proj-1")
  with patch("i18n_backup.clients.locize_client.requests.get", side_effect=requests.ConnectionError("refused")):
    with pytest.raises(FetchFailure, match="Request failed"):
      client.download_namespace("en", "frontend")


def _slow_drip(clock_step: float):
  """Client whose clock advances by ``clock_step`` seconds per reading."""
  ticks = itertools.count(0, clock_step)
  return LocizeClient("proj-1", timeout_seconds=1, clock=lambda: next(ticks))


def test_slow_download_exceeding_deadline_raises():
  client = _slow_drip(0.4)
  response = _response(b'{"k": "v12"}')
  response.iter_content.side_effect = lambda chunk_size=None: iter([bytes([b]) for b in b'{"k": "v12"}'])
  with patch("i18n_backup.clients.locize_client.requests.get", return_value=response):
    with pytest.raises(FetchFailure, match="Timed out after 1s"):
      client.download_namespace("en", "frontend")
  response.close.assert_called_once()


def test_download_within_deadline_succeeds():
  client = _slow_drip(0.1)
  response = _response(b'{"k": "v"}')
  response.iter_content.side_effect = lambda chunk_size=None: iter([b'{"k"', b': "v"}'])
  with patch("i18n_backup.clients.locize_client.requests.get", return_value=response):
    assert client.download_namespace("en", "frontend") == {"k": "v"}


def test_http_error_closes_response():
  client = LocizeClient("proj-1")
  response = _response(b"gone", 410)
  with patch("i18n_backup.clients.locize_client.requests.get", return_value=response):
    with pytest.raises(FetchFailure):
      client.download_namespace("en", "frontend")
  response.close.assert_called_once()
