import logging
import time
from typing import Any, Callable, Optional, TypeVar

from tenacity import RetryCallState, RetryError, Retrying, retry_if_exception_type, retry_if_result, stop_after_attempt, wait_fixed

from i18n_backup.exceptions import BackupError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def call_with_retries(
  operation: Callable[[], T],
  *,
  attempts: int,
  delay: float,
  retry_on: tuple[type[BaseException], ...] = (BackupError,),
  retry_if: Optional[Callable[[Any], bool]] = None,
  sleep: Callable[[float], None] = time.sleep,
  label: str = "operation",
) -> T:
  """Run ``operation`` up to ``attempts`` times with a fixed ``delay`` between tries.

  An attempt is retried when it raises one of ``retry_on`` or, if given, when
  ``retry_if(result)`` is true. Once attempts run out the last exception is
  re-raised, or the last result is returned for predicate-driven retries.
  """
  attempts = max(1, attempts)
  condition = retry_if_exception_type(retry_on)
  if retry_if is not None:
    condition = condition | retry_if_result(retry_if)

  def _before(state: RetryCallState) -> None:
    logger.debug("%s: attempt %d/%d", label, state.attempt_number, attempts)

  def _after(state: RetryCallState) -> None:
    outcome = state.outcome
    if outcome is not None and outcome.failed:
      logger.warning("%s failed (attempt %d/%d): %s", label, state.attempt_number, attempts, outcome.exception())

  def _before_sleep(state: RetryCallState) -> None:
    logger.debug("Waiting %ss before retry...", delay)

  retrying = Retrying(
    stop=stop_after_attempt(attempts),
    wait=wait_fixed(delay),
    retry=condition,
    sleep=sleep,
    before=_before,
    after=_after,
    before_sleep=_before_sleep,
    reraise=True,
  )
  try:
    return retrying(operation)
  except RetryError as exc:
    return exc.last_attempt.result()
