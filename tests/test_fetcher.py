import json
from unittest.mock import MagicMock, Mock, patch

from i18n_backup.clients.locize_client import LocizeClient
from i18n_backup.exceptions import FetchFailure
from i18n_backup.services.fetcher import fetch_namespace


def test_success_after_retries(make_job, fake_client_cls, tmp_path):
  job = make_job(max_retries=3, retry_delay=5)
  client = fake_client_cls({("en", "frontend"): [FetchFailure("timeout"), FetchFailure("502"), {"title": "Hello"}]})
  destination = tmp_path / "i18n-frontend-en.json"
  sleep = Mock()

  assert fetch_namespace(client, job, "en", "frontend", destination, sleep=sleep) is True
  assert len(client.calls) == 3
  assert sleep.call_count == 2
  assert json.loads(destination.read_text()) == {"title": "Hello"}


def test_passes_configured_version(make_job, fake_client_cls, tmp_path):
  client = fake_client_cls()
  fetch_namespace(client, make_job(version="production"), "fr", "backend", tmp_path / "x.json", sleep=Mock())
  assert client.calls == [("fr", "backend", "production")]


def test_exhausted_retries_leave_no_file(make_job, fake_client_cls, tmp_path):
  job = make_job(max_retries=2)
  client = fake_client_cls({("en", "frontend"): [FetchFailure("a"), FetchFailure("b")]})
  destination = tmp_path / "i18n-frontend-en.json"
  destination.write_text("stale")
  sleep = Mock()

  assert fetch_namespace(client, job, "en", "frontend", destination, sleep=sleep) is False
  assert not destination.exists()
  assert sleep.call_count == 1


def test_structurally_invalid_artifact_is_a_failed_attempt(make_job, tmp_path):
  job = make_job(max_retries=3)
  client = LocizeClient("proj-1")
  response = MagicMock(status_code=200)
  response.iter_content.side_effect = lambda chunk_size=None: iter([b'["not", "an", "object"]'])
  destination = tmp_path / "i18n-frontend-en.json"
  sleep = Mock()

  with patch("i18n_backup.clients.locize_client.requests.get", return_value=response) as get:
    assert fetch_namespace(client, job, "en", "frontend", destination, sleep=sleep) is False
  assert get.call_count == 3
  assert not destination.exists()
  assert list(tmp_path.iterdir()) == []


def test_write_errors_are_retried(make_job, fake_client_cls, tmp_path):
  job = make_job(max_retries=2)
  blocker = tmp_path / "blocker"
  blocker.write_text("a file where a directory is expected")
  destination = blocker / "i18n-frontend-en.json"

  assert fetch_namespace(fake_client_cls(), job, "en", "frontend", destination, sleep=Mock()) is False
