import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from i18n_backup.storage.filesystem import RUN_TIMESTAMP_FORMAT

logger = logging.getLogger(__name__)

BACKUP_INTERVAL_SECONDS = 86400
SUMMARY_GLOB = "backup-summary-*.json"


@dataclass(frozen=True)
class GateDecision:
  proceed: bool
  reason: str
  hours_since: Optional[int] = None
  remaining_hours: Optional[int] = None


def parse_run_timestamp(value: Any) -> datetime:
  if not isinstance(value, str):
    raise ValueError(f"timestamp must be a string, got {type(value).__name__}")
  return datetime.strptime(value, RUN_TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)


def load_latest_summary(summaries_dir: Path) -> Optional[dict]:
  """Return the summary record with the newest recorded timestamp, if any.

  Unreadable files and records without a parseable timestamp are skipped
  with a warning.
  """
  if not summaries_dir.is_dir():
    logger.debug("No summaries directory found at %s", summaries_dir)
    return None

  latest: Optional[dict] = None
  latest_ts: Optional[datetime] = None
  for path in sorted(summaries_dir.glob(SUMMARY_GLOB)):
    try:
      record = json.loads(path.read_text(encoding="utf-8"))
      ts = parse_run_timestamp(record.get("timestamp"))
    except (OSError, ValueError, AttributeError) as exc:
      logger.warning("Ignoring unreadable backup summary %s: %s", path.name, exc)
      continue
    if latest_ts is None or ts > latest_ts:
      latest, latest_ts = record, ts

  if latest is not None:
    logger.debug("Found latest summary: backup-summary-%s.json", latest["timestamp"])
  return latest


def decide(latest: Optional[dict], now: datetime, force: bool) -> GateDecision:
  if latest is None:
    return GateDecision(True, "no previous backup")
  try:
    last = parse_run_timestamp(latest.get("timestamp"))
  except ValueError:
    logger.warning("Could not parse timestamp from latest backup summary, proceeding with backup")
    return GateDecision(True, "unparsable previous timestamp")

  elapsed = int((now - last).total_seconds())
  hours_since = elapsed // 3600
  if elapsed >= BACKUP_INTERVAL_SECONDS:
    return GateDecision(True, "interval elapsed", hours_since=hours_since)
  remaining = 24 - hours_since
  if force:
    return GateDecision(True, "forced", hours_since=hours_since, remaining_hours=remaining)
  return GateDecision(False, "recent backup", hours_since=hours_since, remaining_hours=remaining)


def check_last_backup(summaries_dir: Path, force: bool = False, now: Optional[datetime] = None) -> GateDecision:
  now = now or datetime.now(timezone.utc)
  decision = decide(load_latest_summary(summaries_dir), now, force)
  if decision.hours_since is None:
    logger.debug("Proceeding with backup (%s)", decision.reason)
  elif decision.remaining_hours is None:
    logger.info("Last backup was %d hours ago, proceeding with new backup", decision.hours_since)
  else:
    logger.info("Last backup was performed %d hours ago (less than 24 hours)", decision.hours_since)
    if decision.proceed:
      logger.info("Force mode enabled, proceeding with backup despite recent execution")
    else:
      logger.info("Backup already performed within the last 24 hours")
      logger.info("Next backup can be performed in approximately %d hours", decision.remaining_hours)
      logger.info("Use --force flag to override this check")
  return decision
