import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

from i18n_backup.exceptions import DependencyMissing, UploadFailure
from i18n_backup.models import BackupJob
from i18n_backup.retry import call_with_retries

logger = logging.getLogger(__name__)

METADATA_SOURCE = "locize-backup"
STORAGE_CLASS = "STANDARD_IA"


def build_s3_client(job: BackupJob) -> Any:
  try:
    import boto3
    from botocore.config import Config
  except ImportError as exc:
    raise DependencyMissing("boto3 is required when S3_BUCKET_NAME is set (pip install boto3)") from exc

  # Retries are driven by S3Uploader; botocore makes a single attempt per call.
  kwargs: dict[str, Any] = {"config": Config(retries={"max_attempts": 1, "mode": "standard"})}
  if job.endpoint_url:
    kwargs["endpoint_url"] = job.endpoint_url
  if job.aws_access_key_id and job.aws_secret_access_key:
    kwargs["aws_access_key_id"] = job.aws_access_key_id
    kwargs["aws_secret_access_key"] = job.aws_secret_access_key
  elif job.aws_profile:
    session = boto3.Session(profile_name=job.aws_profile, region_name=job.region)
    return session.client("s3", **kwargs)
  else:
    logger.debug("Using IAM role or instance profile for AWS authentication")
  return boto3.client("s3", region_name=job.region, **kwargs)


class S3Uploader:
  def __init__(
    self,
    client: Any,
    bucket: str,
    version: str,
    max_retries: int = 3,
    retry_delay: float = 5,
    sleep: Callable[[float], None] = time.sleep,
    now: Callable[[], datetime] | None = None,
  ):
    self.client = client
    self.bucket = bucket
    self.version = version
    self.max_retries = max_retries
    self.retry_delay = retry_delay
    self.sleep = sleep
    self.now = now or (lambda: datetime.now(timezone.utc))

  def location(self, key: str) -> str:
    return f"s3://{self.bucket}/{key}"

  def put_object(self, local_path: Path, key: str) -> None:
    extra = {
      "Metadata": {
        "source": METADATA_SOURCE,
        "timestamp": str(int(self.now().timestamp())),
        "version": self.version,
      },
      "StorageClass": STORAGE_CLASS,
      "ContentType": "application/json",
    }
    try:
      self.client.upload_file(str(local_path), self.bucket, key, ExtraArgs=extra)
    except Exception as exc:
      raise UploadFailure(f"Upload of {local_path.name} to {self.location(key)} failed: {exc}") from exc

  def upload(self, local_path: Path, key: str) -> bool:
    try:
      call_with_retries(
        lambda: self.put_object(local_path, key),
        attempts=self.max_retries,
        delay=self.retry_delay,
        retry_on=(UploadFailure,),
        sleep=self.sleep,
        label=f"S3 upload {key}",
      )
    except UploadFailure:
      logger.error("Failed to upload to S3 after %d attempts: %s", self.max_retries, key)
      return False
    logger.debug("Uploaded to S3: %s", key)
    return True


def build_uploader(job: BackupJob, sleep: Callable[[float], None] = time.sleep) -> S3Uploader:
  return S3Uploader(
    client=build_s3_client(job),
    bucket=job.bucket_name or "",
    version=job.version,
    max_retries=job.max_retries,
    retry_delay=job.retry_delay,
    sleep=sleep,
  )
