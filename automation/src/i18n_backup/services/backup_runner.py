import argparse
import logging
import os
import signal
import sys
import time
from datetime import datetime, timezone
from itertools import product
from typing import Callable, Optional, Sequence

from i18n_backup.clients.locize_client import LocizeClient
from i18n_backup.config import load_job
from i18n_backup.exceptions import ConfigurationError, DependencyMissing
from i18n_backup.log import log_success, setup_logging
from i18n_backup.models import BackupJob, RunResult
from i18n_backup.services.fetcher import fetch_namespace
from i18n_backup.services.gate import check_last_backup
from i18n_backup.services.reporter import build_summary, deliver_summary, tool_version
from i18n_backup.storage.filesystem import artifact_filename, date_path, prepare_backup_dirs, remove_run_dir, remove_scratch_files, run_timestamp
from i18n_backup.storage.s3 import S3Uploader, build_uploader

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130

HELP_EPILOG = """\
description:
  Downloads internationalization files from Locize and optionally uploads
  them to S3. By default the job exits if a backup was already performed
  within the last 24 hours.

examples:
  i18n-backup            run backup (skip if run within 24 hours)
  i18n-backup --force    force backup regardless of timing
"""


def _utcnow() -> datetime:
  return datetime.now(timezone.utc)


class _ArgumentParser(argparse.ArgumentParser):
  def error(self, message: str) -> None:
    logger.error("%s", message)
    self.print_help(sys.stderr)
    self.exit(EXIT_FAILURE)


def build_parser() -> argparse.ArgumentParser:
  parser = _ArgumentParser(
    prog="i18n-backup",
    description="Locize i18n backup job",
    epilog=HELP_EPILOG,
    formatter_class=argparse.RawDescriptionHelpFormatter,
  )
  parser.add_argument("--force", action="store_true", help="force backup even if one was run within the last 24 hours")
  return parser


def process_pair(
  job: BackupJob,
  client: LocizeClient,
  uploader: Optional[S3Uploader],
  result: RunResult,
  language: str,
  namespace: str,
  sleep: Callable[[float], None],
  now: Callable[[], datetime],
) -> bool:
  filename = artifact_filename(namespace, language, result.timestamp)
  local_file = result.run_dir / filename
  logger.info("Processing: %s/%s", language, namespace)

  if not fetch_namespace(client, job, language, namespace, local_file, sleep=sleep):
    logger.error("Failed to download: %s/%s", language, namespace)
    return False

  if uploader is not None:
    key = f"{date_path(now())}/{filename}"
    if not uploader.upload(local_file, key):
      logger.error("Failed to upload: %s/%s", language, namespace)
      return False
    log_success(logger, "Successfully backed up: %s/%s -> %s", language, namespace, uploader.location(key))
  else:
    log_success(logger, "Successfully backed up: %s/%s -> %s", language, namespace, local_file)
  return True


def run_backup(
  job: BackupJob,
  client: LocizeClient,
  uploader: Optional[S3Uploader] = None,
  sleep: Callable[[float], None] = time.sleep,
  now: Callable[[], datetime] = _utcnow,
) -> RunResult:
  started_at = now()
  result = RunResult(
    timestamp=run_timestamp(started_at),
    started_at=started_at,
    run_dir=prepare_backup_dirs(job.backup_root_dir, started_at),
    total=job.total_combinations,
  )

  logger.info("Starting backup process")
  logger.info("Project ID: %s", job.project_id)
  logger.info("Version: %s", job.version)
  logger.info("Languages: %s", " ".join(job.languages))
  logger.info("Namespaces: %s", " ".join(job.namespaces))
  logger.info("Total combinations: %d", result.total)
  if uploader is not None:
    logger.info("Storage: S3 bucket s3://%s", uploader.bucket)
  else:
    logger.info("Storage: Local directory %s", job.backup_root_dir)

  pairs = list(product(job.languages, job.namespaces))
  try:
    for index, (language, namespace) in enumerate(pairs):
      if process_pair(job, client, uploader, result, language, namespace, sleep, now):
        result.record_success()
      else:
        result.record_failure(language, namespace)
      if index < len(pairs) - 1 and job.rate_limit_delay:
        sleep(job.rate_limit_delay)
  except KeyboardInterrupt:
    remove_scratch_files(result.run_dir)
    if job.cleanup_enabled:
      remove_run_dir(result.run_dir, job.backup_root_dir)
      logger.debug("Partial backup files removed (summaries preserved)")
    raise

  logger.info("Backup process completed")
  logger.info("Total: %d, Successful: %d, Failed: %d", result.total, result.successful, result.failed)
  if result.failed:
    logger.error("Failed combinations: %s", ", ".join(result.failed_pairs))

  if job.cleanup_enabled and result.successful > 0:
    logger.info("Cleaning up local files...")
    remove_run_dir(result.run_dir, job.backup_root_dir)
    logger.debug("Local backup files cleaned up (summaries preserved)")
  return result


def _raise_interrupt(signum, frame) -> None:
  raise KeyboardInterrupt(signal.Signals(signum).name)


def main(
  argv: Optional[Sequence[str]] = None,
  environ=None,
  sleep: Callable[[float], None] = time.sleep,
  now: Callable[[], datetime] = _utcnow,
) -> int:
  env = os.environ if environ is None else environ
  setup_logging(env.get("LOG_LEVEL", "INFO"))
  args = build_parser().parse_args(argv)
  if args.force:
    logger.info("Force backup mode enabled")

  logger.info("=== Locize Backup Started ===")
  logger.info("Version: %s", tool_version())
  logger.info("Timestamp: %s", now().strftime("%Y-%m-%d %H:%M:%S UTC"))

  try:
    job = load_job(env)
    uploader = build_uploader(job, sleep=sleep) if job.use_s3 else None
  except ConfigurationError as exc:
    logger.error("Configuration validation failed:")
    for error in exc.errors:
      logger.error("  %s", error)
    return EXIT_FAILURE
  except DependencyMissing as exc:
    logger.error("Missing required dependency: %s", exc)
    return EXIT_FAILURE

  decision = check_last_backup(job.summaries_dir, force=args.force, now=now())
  if not decision.proceed:
    return EXIT_OK

  client = LocizeClient(job.project_id, api_key=job.api_key, base_url=job.api_base_url, timeout_seconds=job.fetch_timeout)
  try:
    result = run_backup(job, client, uploader, sleep=sleep, now=now)
  except KeyboardInterrupt:
    logger.error("Backup interrupted")
    return EXIT_INTERRUPTED

  deliver_summary(build_summary(result, job, now=now()), job, uploader)

  if result.failed:
    logger.error("Backup completed with failures")
    return EXIT_FAILURE
  log_success(logger, "Backup completed successfully")
  return EXIT_OK


def cli() -> None:
  signal.signal(signal.SIGTERM, _raise_interrupt)
  try:
    code = main()
  except KeyboardInterrupt:
    code = EXIT_INTERRUPTED
  logger.info("Exiting with code: %d", code)
  sys.exit(code)


if __name__ == "__main__":
  cli()
