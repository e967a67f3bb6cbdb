"""
Remote save of a calculator snapshot to a spreadsheet web-app endpoint.

The endpoint (typically a Google Apps Script web app) receives one
form-encoded POST per save. Any failure, whether local validation, a
non-2xx response or a transport error, is reported as the same "error"
status; the reason is only logged.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import List, Optional

import requests

from retention_app.derivation import Results
from retention_app.inputs import CallMetadata, RetentionInputs
from retention_app.snapshot import build_snapshot, form_fields

logger = logging.getLogger(__name__)

SUCCESS = "success"
ERROR = "error"


@dataclass(frozen=True)
class SaveOutcome:
    status: str
    reason: str = ""

    @property
    def ok(self) -> bool:
        return self.status == SUCCESS


def validate_save(meta: CallMetadata) -> List[str]:
    problems = []
    if not meta.google_sheet_url.strip():
        problems.append("Spreadsheet web app URL is required.")
    if not meta.client_name.strip():
        problems.append("Client name is required.")
    return problems


class SheetsClient:
    """
    Posts snapshots with a `requests.Session`.

    No retry and no timeout unless one is configured; each call to `save`
    is independent of any other in flight.
    """

    def __init__(
        self,
        *,
        timeout_seconds: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._session = session or requests.Session()
        self._timeout = timeout_seconds

    def save(
        self,
        meta: CallMetadata,
        inputs: RetentionInputs,
        results: Results,
        timestamp: Optional[str] = None,
    ) -> SaveOutcome:
        problems = validate_save(meta)
        if problems:
            logger.info("Save skipped: %s", " ".join(problems))
            return SaveOutcome(ERROR, "validation")

        snapshot = build_snapshot(meta, inputs, results, timestamp=timestamp)
        try:
            resp = self._session.post(meta.google_sheet_url, data=form_fields(snapshot), timeout=self._timeout)
        except requests.RequestException as e:
            logger.warning("Save to %s failed: %s", meta.google_sheet_url, e)
            return SaveOutcome(ERROR, "transport")

        if not 200 <= resp.status_code < 300:
            logger.warning("Save to %s returned HTTP %s", meta.google_sheet_url, resp.status_code)
            return SaveOutcome(ERROR, "http")

        logger.info("Saved snapshot for client %r", meta.client_name)
        return SaveOutcome(SUCCESS)


class StatusFlag:
    """Save status that reads back as "" once `clear_after_seconds` have passed."""

    def __init__(self, clear_after_seconds: float = 2.0) -> None:
        self.clear_after_seconds = clear_after_seconds
        self._status = ""
        self._set_at = 0.0

    def set(self, status: str, now: Optional[float] = None) -> None:
        self._status = status
        self._set_at = time.monotonic() if now is None else now

    def current(self, now: Optional[float] = None) -> str:
        now = time.monotonic() if now is None else now
        if self._status and now - self._set_at >= self.clear_after_seconds:
            self._status = ""
        return self._status
