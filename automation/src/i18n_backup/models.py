from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Optional


@dataclass(frozen=True)
class BackupJob:
  project_id: str
  api_key: Optional[str] = field(default=None, repr=False)
  languages: tuple[str, ...] = ()
  namespaces: tuple[str, ...] = ()
  version: str = "latest"
  bucket_name: Optional[str] = None
  region: str = "us-east-1"
  endpoint_url: Optional[str] = None
  aws_access_key_id: Optional[str] = None
  aws_secret_access_key: Optional[str] = field(default=None, repr=False)
  aws_profile: Optional[str] = None
  max_retries: int = 3
  retry_delay: float = 5
  rate_limit_delay: float = 1
  fetch_timeout: float = 30
  cleanup_local_files: bool = False
  backup_root_dir: Path = Path("/app/backup/data")
  api_base_url: str = "https://api.locize.app"
  log_level: str = "INFO"

  @property
  def use_s3(self) -> bool:
    return bool(self.bucket_name)

  @property
  def cleanup_enabled(self) -> bool:
    return self.use_s3 and self.cleanup_local_files

  @property
  def summaries_dir(self) -> Path:
    return self.backup_root_dir / "summaries"

  @property
  def total_combinations(self) -> int:
    return len(self.languages) * len(self.namespaces)


@dataclass
class RunResult:
  timestamp: str
  started_at: datetime
  run_dir: Path
  total: int
  successful: int = 0
  failed: int = 0
  failed_pairs: list[str] = field(default_factory=list)

  def record_success(self) -> None:
    self.successful += 1

  def record_failure(self, language: str, namespace: str) -> None:
    self.failed += 1
    self.failed_pairs.append(f"{language}/{namespace}")


@dataclass
class SummaryRecord:
  timestamp: str
  project_id: str
  version: str
  backup_date: str
  total_combinations: int
  successful: int
  failed: int
  success_rate: float
  failed_combinations: list[str]
  storage_type: str
  storage_location: str
  tool_version: str
  backup_method: str = "locize-api"
  resource_usage: dict[str, Any] = field(default_factory=dict)

  @property
  def filename(self) -> str:
    return f"backup-summary-{self.timestamp}.json"

  def to_dict(self) -> dict[str, Any]:
    location_key = "s3_bucket" if self.storage_type == "s3" else "local_backup_path"
    return {
      "timestamp": self.timestamp,
      "project_id": self.project_id,
      "version": self.version,
      "backup_date": self.backup_date,
      "total_combinations": self.total_combinations,
      "successful": self.successful,
      "failed": self.failed,
      "success_rate": self.success_rate,
      "failed_combinations": list(self.failed_combinations),
      "storage_type": self.storage_type,
      location_key: self.storage_location,
      "backup_method": self.backup_method,
      "tool_version": self.tool_version,
      "resource_usage": dict(self.resource_usage),
    }
