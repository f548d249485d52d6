import logging
import time
from pathlib import Path
from typing import Callable

from i18n_backup.clients.locize_client import LocizeClient
from i18n_backup.exceptions import FetchFailure
from i18n_backup.models import BackupJob
from i18n_backup.retry import call_with_retries
from i18n_backup.storage.filesystem import save_translations_to_file

logger = logging.getLogger(__name__)


def _download_once(client: LocizeClient, job: BackupJob, language: str, namespace: str, destination: Path) -> Path:
  data = client.download_namespace(language, namespace, version=job.version)
  try:
    size, digest = save_translations_to_file(destination, data)
  except OSError as exc:
    raise FetchFailure(f"Could not write {destination}: {exc}") from exc
  logger.debug("Downloaded and validated: %s (%d bytes, sha256 %s)", destination.name, size, digest[:12])
  return destination


def fetch_namespace(
  client: LocizeClient,
  job: BackupJob,
  language: str,
  namespace: str,
  destination: Path,
  sleep: Callable[[float], None] = time.sleep,
) -> bool:
  try:
    call_with_retries(
      lambda: _download_once(client, job, language, namespace, destination),
      attempts=job.max_retries,
      delay=job.retry_delay,
      retry_on=(FetchFailure,),
      sleep=sleep,
      label=f"Download {language}/{namespace}",
    )
  except FetchFailure:
    if destination.exists():
      destination.unlink()
    logger.error("Failed to download after %d attempts: %s/%s", job.max_retries, language, namespace)
    return False
  return True
