import logging
from datetime import datetime, timezone
from importlib.metadata import PackageNotFoundError, version as package_version
from pathlib import Path
from typing import Optional

import psutil

from i18n_backup.exceptions import SummaryDeliveryFailure
from i18n_backup.log import log_success
from i18n_backup.models import BackupJob, RunResult, SummaryRecord
from i18n_backup.storage.filesystem import SUMMARIES_DIRNAME, write_json_atomic
from i18n_backup.storage.s3 import S3Uploader

logger = logging.getLogger(__name__)

DISTRIBUTION = "locize-i18n-backup"


def tool_version() -> str:
  try:
    return f"{DISTRIBUTION}/{package_version(DISTRIBUTION)}"
  except PackageNotFoundError:
    return f"{DISTRIBUTION}/unknown"


def resource_usage() -> dict:
  process = psutil.Process()
  return {
    "cpu_percent": psutil.cpu_percent(interval=None),
    "mem_rss": process.memory_info().rss,
  }


def compute_success_rate(successful: int, total: int) -> float:
  if total <= 0:
    return 0
  return round(successful * 100 / total, 2)


def build_summary(result: RunResult, job: BackupJob, now: Optional[datetime] = None) -> SummaryRecord:
  now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
  return SummaryRecord(
    timestamp=result.timestamp,
    project_id=job.project_id,
    version=job.version,
    backup_date=now.strftime("%Y-%m-%d %H:%M:%S UTC"),
    total_combinations=result.total,
    successful=result.successful,
    failed=result.failed,
    success_rate=compute_success_rate(result.successful, result.total),
    failed_combinations=list(result.failed_pairs),
    storage_type="s3" if job.use_s3 else "local",
    storage_location=job.bucket_name if job.use_s3 else str(job.backup_root_dir),
    tool_version=tool_version(),
    resource_usage=resource_usage(),
  )


def write_summary(summaries_dir: Path, record: SummaryRecord) -> Path:
  path = summaries_dir / record.filename
  write_json_atomic(path, record.to_dict())
  return path


def _deliver(record: SummaryRecord, job: BackupJob, uploader: Optional[S3Uploader]) -> Optional[Path]:
  try:
    path = write_summary(job.summaries_dir, record)
  except OSError as exc:
    raise SummaryDeliveryFailure(f"Could not write summary {record.filename}: {exc}") from exc

  if not (job.use_s3 and uploader is not None):
    log_success(logger, "Summary report created: %s", path)
    return path

  key = f"{SUMMARIES_DIRNAME}/{record.filename}"
  if not uploader.upload(path, key):
    raise SummaryDeliveryFailure(f"Failed to upload summary report to {uploader.location(key)}")
  log_success(logger, "Summary report uploaded: %s", uploader.location(key))
  if job.cleanup_enabled:
    path.unlink(missing_ok=True)
    return None
  return path


def deliver_summary(record: SummaryRecord, job: BackupJob, uploader: Optional[S3Uploader] = None) -> Optional[Path]:
  """Persist the summary locally and, in S3 mode, remotely.

  Returns the local path left on disk. Delivery problems are logged and never
  raised: the run's exit code reflects fetch and upload outcomes only.
  """
  try:
    return _deliver(record, job, uploader)
  except SummaryDeliveryFailure as exc:
    logger.warning("%s", exc)
    path = job.summaries_dir / record.filename
    return path if path.exists() else None
