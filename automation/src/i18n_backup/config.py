import logging
import os
from pathlib import Path
from typing import Mapping, Optional

from i18n_backup.exceptions import ConfigurationError
from i18n_backup.models import BackupJob

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGES = "en,fr,de,ja,ko,zh"
DEFAULT_NAMESPACES = "frontend,backend-templates,configurations-schemes,configurations-forms"
DEFAULT_BACKUP_ROOT_DIR = "/app/backup/data"
DEFAULT_API_BASE_URL = "https://api.locize.app"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def split_list(value: Optional[str]) -> tuple[str, ...]:
  if not value:
    return ()
  return tuple(item.strip() for item in value.split(",") if item.strip())


def _optional(environ: Mapping[str, str], key: str) -> Optional[str]:
  value = environ.get(key, "").strip()
  return value or None


def _number(environ: Mapping[str, str], key: str, default: str, convert, errors: list[str]):
  raw = environ.get(key, default).strip() or default
  try:
    return convert(raw)
  except ValueError:
    errors.append(f"{key} must be a number, got {raw!r}")
    return convert(default)


def load_job(environ: Mapping[str, str] | None = None) -> BackupJob:
  """Build the immutable job configuration from environment variables.

  All problems are collected and raised together as one ConfigurationError.
  """
  env = os.environ if environ is None else environ
  errors: list[str] = []

  project_id = _optional(env, "LOCIZE_PROJECT_ID")
  if not project_id:
    errors.append("LOCIZE_PROJECT_ID is required")

  max_retries = _number(env, "MAX_RETRIES", "3", int, errors)
  retry_delay = _number(env, "RETRY_DELAY", "5", float, errors)
  rate_limit_delay = _number(env, "RATE_LIMIT_DELAY", "1", float, errors)
  timeout_key = "LOCIZE_CLI_TIMEOUT" if env.get("LOCIZE_CLI_TIMEOUT", "").strip() else "LOCIZE_TIMEOUT_SECONDS"
  fetch_timeout = _number(env, timeout_key, "30", float, errors)
  if max_retries < 1:
    errors.append(f"MAX_RETRIES must be at least 1, got {max_retries}")
  if retry_delay < 0:
    errors.append(f"RETRY_DELAY must not be negative, got {retry_delay}")
  if rate_limit_delay < 0:
    errors.append(f"RATE_LIMIT_DELAY must not be negative, got {rate_limit_delay}")
  if fetch_timeout <= 0:
    errors.append(f"{timeout_key} must be positive, got {fetch_timeout}")

  bucket_name = _optional(env, "S3_BUCKET_NAME")
  region = env.get("AWS_REGION", "us-east-1").strip()
  access_key = _optional(env, "AWS_ACCESS_KEY_ID")
  secret_key = _optional(env, "AWS_SECRET_ACCESS_KEY")
  profile = _optional(env, "AWS_PROFILE")
  cleanup = env.get("CLEANUP_LOCAL_FILES", "true").strip().lower() in _TRUE_VALUES
  backup_root_dir = Path(env.get("BACKUP_ROOT_DIR", DEFAULT_BACKUP_ROOT_DIR) or DEFAULT_BACKUP_ROOT_DIR)

  if bucket_name:
    if not region:
      errors.append("AWS_REGION is required when using S3 storage")
    if access_key and not secret_key:
      errors.append("AWS_SECRET_ACCESS_KEY is required when AWS_ACCESS_KEY_ID is set")
    elif not access_key and not profile:
      logger.warning("No AWS credentials found (AWS_ACCESS_KEY_ID or AWS_PROFILE). Assuming IAM role or instance profile is configured.")
    logger.info("S3 storage configured: s3://%s", bucket_name)
    if access_key:
      logger.debug("Using AWS Access Key ID: %s...", access_key[:8])
    elif profile:
      logger.debug("Using AWS Profile: %s", profile)
  else:
    logger.info("Local storage configured: %s", backup_root_dir)
    if cleanup:
      logger.warning("CLEANUP_LOCAL_FILES is set to true but using local storage - setting to false")
      cleanup = False

  api_key = _optional(env, "LOCIZE_API_KEY")
  if not api_key:
    logger.warning("LOCIZE_API_KEY not set - only public projects will be accessible")

  if errors:
    raise ConfigurationError(errors)

  job = BackupJob(
    project_id=project_id,
    api_key=api_key,
    languages=split_list(env.get("LOCIZE_LANGUAGES", DEFAULT_LANGUAGES)),
    namespaces=split_list(env.get("LOCIZE_NAMESPACES", DEFAULT_NAMESPACES)),
    version=(env.get("LOCIZE_VERSION", "latest").strip() or "latest"),
    bucket_name=bucket_name,
    region=region or "us-east-1",
    endpoint_url=_optional(env, "AWS_ENDPOINT_URL"),
    aws_access_key_id=access_key,
    aws_secret_access_key=secret_key,
    aws_profile=profile,
    max_retries=max_retries,
    retry_delay=retry_delay,
    rate_limit_delay=rate_limit_delay,
    fetch_timeout=fetch_timeout,
    cleanup_local_files=cleanup,
    backup_root_dir=backup_root_dir,
    api_base_url=(env.get("LOCIZE_API_BASE_URL", DEFAULT_API_BASE_URL).strip() or DEFAULT_API_BASE_URL).rstrip("/"),
    log_level=env.get("LOG_LEVEL", "INFO").strip().upper() or "INFO",
  )
  if not job.total_combinations:
    logger.warning("No language/namespace combinations configured")
  logger.debug("Configuration validation passed")
  return job
