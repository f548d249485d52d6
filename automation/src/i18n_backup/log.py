import logging
import sys
import time

SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

LEVELS = {
  "ERROR": logging.ERROR,
  "WARN": logging.WARNING,
  "WARNING": logging.WARNING,
  "SUCCESS": SUCCESS,
  "INFO": logging.INFO,
  "DEBUG": logging.DEBUG,
}

LOG_FORMAT = "[%(asctime)s UTC] [%(levelname)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
PACKAGE_LOGGER = "i18n_backup"


class UTCFormatter(logging.Formatter):
  converter = time.gmtime


class _BelowLevel(logging.Filter):
  def __init__(self, level: int):
    super().__init__()
    self.level = level

  def filter(self, record: logging.LogRecord) -> bool:
    return record.levelno < self.level


def resolve_level(name: str | None) -> int:
  return LEVELS.get((name or "INFO").strip().upper(), logging.INFO)


def setup_logging(level_name: str | None = "INFO") -> logging.Logger:
  level = resolve_level(level_name)
  logger = logging.getLogger(PACKAGE_LOGGER)
  for handler in list(logger.handlers):
    logger.removeHandler(handler)
  # Warnings and errors reach stderr whatever LOG_LEVEL says; LOG_LEVEL only filters stdout.
  logger.setLevel(min(level, logging.WARNING))

  fmt = UTCFormatter(LOG_FORMAT, datefmt=DATE_FORMAT)

  out = logging.StreamHandler(sys.stdout)
  out.setLevel(level)
  out.addFilter(_BelowLevel(logging.WARNING))
  out.setFormatter(fmt)
  logger.addHandler(out)

  err = logging.StreamHandler(sys.stderr)
  err.setLevel(logging.WARNING)
  err.setFormatter(fmt)
  logger.addHandler(err)

  for noisy in ("boto3", "botocore", "s3transfer", "urllib3"):
    logging.getLogger(noisy).setLevel(logging.WARNING)
  return logger


def log_success(logger: logging.Logger, msg: str, *args) -> None:
  logger.log(SUCCESS, msg, *args)
