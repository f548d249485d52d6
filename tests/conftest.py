"""Shared fixtures for the backup job tests."""

import logging
from datetime import datetime, timezone

import pytest

from i18n_backup.models import BackupJob

FIXED_NOW = datetime(2024, 5, 17, 12, 0, 0, tzinfo=timezone.utc)


class FakeLocizeClient:
  """Stands in for LocizeClient; outcomes are queued per (language, namespace)."""

  def __init__(self, outcomes=None, default=None):
    self.outcomes = {key: list(value) for key, value in (outcomes or {}).items()}
    self.default = default if default is not None else {"greeting": "hello"}
    self.calls = []

  def download_namespace(self, language, namespace, version="latest"):
    self.calls.append((language, namespace, version))
    queue = self.outcomes.get((language, namespace))
    outcome = queue.pop(0) if queue else self.default
    if isinstance(outcome, BaseException):
      raise outcome
    return outcome


@pytest.fixture
def fixed_now():
  return FIXED_NOW


@pytest.fixture
def fake_client_cls():
  return FakeLocizeClient


@pytest.fixture
def make_job(tmp_path):
  def _make(**overrides):
    values = dict(
      project_id="proj-1",
      languages=("en", "fr"),
      namespaces=("frontend", "backend"),
      max_retries=3,
      retry_delay=5,
      rate_limit_delay=1,
      fetch_timeout=30,
      backup_root_dir=tmp_path / "backup",
    )
    values.update(overrides)
    return BackupJob(**values)
  return _make


@pytest.fixture(autouse=True)
def reset_package_logger():
  yield
  logger = logging.getLogger("i18n_backup")
  for handler in list(logger.handlers):
    logger.removeHandler(handler)
  logger.setLevel(logging.NOTSET)
