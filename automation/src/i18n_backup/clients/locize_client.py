import json
import time
from typing import Any, Callable, Optional

import requests

from i18n_backup.exceptions import FetchFailure

CHUNK_SIZE = 8192


class LocizeClient:
  def __init__(
    self,
    project_id: str,
    api_key: Optional[str] = None,
    base_url: str = "https://api.locize.app",
    timeout_seconds: float = 30,
    clock: Callable[[], float] = time.monotonic,
  ):
    self.project_id = project_id
    self.api_key = api_key
    self.base_url = base_url.rstrip("/")
    self.timeout_seconds = timeout_seconds
    self.clock = clock

  def _headers(self) -> dict:
    headers = {"Accept": "application/json"}
    if self.api_key:
      headers["Authorization"] = f"Bearer {self.api_key}"
    return headers

  def namespace_url(self, language: str, namespace: str, version: str = "latest") -> str:
    # The CDN path serves published namespaces; unpublished or private projects need the API key path.
    prefix = f"{self.base_url}/private" if self.api_key else self.base_url
    return f"{prefix}/{self.project_id}/{version}/{language}/{namespace}"

  def _read_body(self, response: requests.Response, deadline: float, pair: str) -> bytes:
    # The requests timeout only bounds each socket read; the deadline bounds the whole download.
    chunks = []
    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
      if self.clock() > deadline:
        raise FetchFailure(f"Timed out after {self.timeout_seconds}s downloading {pair}")
      chunks.append(chunk)
    return b"".join(chunks)

  def download_namespace(self, language: str, namespace: str, version: str = "latest") -> dict[str, Any]:
    pair = f"{language}/{namespace}"
    url = self.namespace_url(language, namespace, version)
    deadline = self.clock() + self.timeout_seconds
    try:
      response = requests.get(url, headers=self._headers(), timeout=self.timeout_seconds, stream=True)
      try:
        response.raise_for_status()
        body = self._read_body(response, deadline, pair)
      finally:
        response.close()
    except requests.Timeout as exc:
      raise FetchFailure(f"Timed out after {self.timeout_seconds}s downloading {pair}") from exc
    except requests.HTTPError as exc:
      raise FetchFailure(f"HTTP {exc.response.status_code if exc.response is not None else '?'} downloading {pair}") from exc
    except requests.RequestException as exc:
      raise FetchFailure(f"Request failed for {pair}: {exc}") from exc

    if not body.strip():
      raise FetchFailure(f"Empty response for {pair}")
    try:
      data = json.loads(body)
    except ValueError as exc:
      raise FetchFailure(f"Invalid JSON for {pair}") from exc
    if not isinstance(data, dict):
      raise FetchFailure(f"Expected a JSON object for {pair}, got {type(data).__name__}")
    return data
