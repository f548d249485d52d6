import json
import os
import shutil
from datetime import datetime, timezone
from hashlib import sha256
from pathlib import Path
from typing import Any

SUMMARIES_DIRNAME = "summaries"
SCRATCH_SUFFIX = ".part"
RUN_TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"


def date_path(ts: datetime) -> str:
  return ts.astimezone(timezone.utc).strftime("%Y/%m/%d")


def run_timestamp(ts: datetime) -> str:
  return ts.astimezone(timezone.utc).strftime(RUN_TIMESTAMP_FORMAT)


def artifact_filename(namespace: str, language: str, timestamp: str) -> str:
  return f"i18n-{namespace}-{language}-{timestamp}.json"


def prepare_backup_dirs(base_dir: Path, ts: datetime) -> Path:
  daily_dir = base_dir / date_path(ts)
  daily_dir.mkdir(parents=True, exist_ok=True)
  (base_dir / SUMMARIES_DIRNAME).mkdir(parents=True, exist_ok=True)
  return daily_dir


def write_json_atomic(path: Path, data: Any) -> bytes:
  encoded = (json.dumps(data, indent=2, ensure_ascii=False) + "\n").encode("utf-8")
  path.parent.mkdir(parents=True, exist_ok=True)
  scratch = path.with_name(path.name + SCRATCH_SUFFIX)
  try:
    scratch.write_bytes(encoded)
    os.replace(scratch, path)
  finally:
    scratch.unlink(missing_ok=True)
  return encoded


def save_translations_to_file(path: Path, data: dict) -> tuple[int, str]:
  encoded = write_json_atomic(path, data)
  return len(encoded), sha256(encoded).hexdigest()


def remove_scratch_files(directory: Path) -> int:
  if not directory.is_dir():
    return 0
  removed = 0
  for scratch in directory.glob(f"*{SCRATCH_SUFFIX}"):
    scratch.unlink(missing_ok=True)
    removed += 1
  return removed


def remove_run_dir(run_dir: Path, base_dir: Path) -> None:
  run_dir = run_dir.resolve()
  base_dir = base_dir.resolve()
  summaries = base_dir / SUMMARIES_DIRNAME
  if run_dir == base_dir or run_dir == summaries or summaries in run_dir.parents:
    raise ValueError(f"Refusing to remove {run_dir}")
  if base_dir not in run_dir.parents:
    raise ValueError(f"{run_dir} is outside {base_dir}")
  shutil.rmtree(run_dir, ignore_errors=True)
  # Prune the now-empty MM and YYYY levels of the date path.
  parent = run_dir.parent
  while parent != base_dir:
    try:
      parent.rmdir()
    except OSError:
      break
    parent = parent.parent
