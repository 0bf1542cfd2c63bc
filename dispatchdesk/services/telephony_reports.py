"""Client for the telephony provider's call detail record (CDR) reporting API.

The provider builds reports asynchronously: a report job is created for a
time window, polled until it finishes, and the resulting CSV/XLSX file is
downloaded from the URL the finished job reports.
"""
import asyncio
import logging
from datetime import datetime
from typing import Optional, List, Tuple
from urllib.parse import urlparse
import httpx
from pydantic import BaseModel
from dispatchdesk.core.config import settings
from dispatchdesk.core.exceptions import (
    ReportCreationError,
    ReportFailedError,
    ReportTimeoutError,
    ReportDownloadError,
    SpreadsheetError,
)
from dispatchdesk.core.metrics import telephony_report_failures
from dispatchdesk.utils.spreadsheet import (
    read_table,
    resolve_columns,
    cell,
    parse_duration,
    parse_timestamp,
)

logger = logging.getLogger(__name__)

FINISHED_STATUSES = {"complete", "completed", "success", "succeeded", "done", "finished"}
FAILED_STATUSES = {"failed", "error", "expired", "cancelled"}

CALL_REPORT_COLUMNS = {
    "destination": ("destination_number", "destination", "to", "to_number", "called_number", "callee", "dest"),
    "source": ("source_number", "source", "from", "from_number", "cli", "caller", "calling_number", "caller_id"),
    "duration": ("duration", "duration_seconds", "billsec", "billed_sec", "call_sec", "call_duration", "talk_time"),
    "started_at": ("started_at", "start_time", "start", "call_start", "started", "date", "created_at", "timestamp"),
    "status": ("status", "call_status", "result", "disposition", "hangup_cause"),
    "direction": ("direction", "call_direction", "leg"),
    "recording_url": ("recording_url", "recording", "recording_link"),
}


class CallRecord(BaseModel):
    destination: Optional[str] = None
    source: Optional[str] = None
    duration_seconds: int = 0
    started_at: Optional[datetime] = None
    status: Optional[str] = None
    direction: Optional[str] = None
    recording_url: Optional[str] = None


def parse_call_report(content: bytes, filename: Optional[str] = None) -> List[CallRecord]:
    df = read_table(content, filename)
    columns = resolve_columns(df.columns, CALL_REPORT_COLUMNS)
    if columns["started_at"] is None or (columns["destination"] is None and columns["source"] is None):
        logger.warning(f"Call report is missing number or start time columns; headers: {list(df.columns)}")

    records = []
    for row in df.to_dict(orient="records"):
        records.append(CallRecord(
            destination=cell(row, columns["destination"]),
            source=cell(row, columns["source"]),
            duration_seconds=parse_duration(cell(row, columns["duration"])),
            started_at=parse_timestamp(cell(row, columns["started_at"])),
            status=cell(row, columns["status"]),
            direction=cell(row, columns["direction"]),
            recording_url=cell(row, columns["recording_url"]),
        ))
    return records


def _payload(response: httpx.Response) -> dict:
    try:
        body = response.json()
    except ValueError:
        return {}
    if isinstance(body, dict) and isinstance(body.get("data"), dict):
        return body["data"]
    return body if isinstance(body, dict) else {}


def _isoformat(value: datetime) -> str:
    return value.isoformat().replace("+00:00", "Z")


class TelephonyReportClient:

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        report_path: Optional[str] = None,
        poll_interval: Optional[float] = None,
        poll_attempts: Optional[int] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.TELEPHONY_API_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.TELEPHONY_API_KEY
        self.report_path = report_path or settings.TELEPHONY_REPORT_PATH
        self.poll_interval = settings.REPORT_POLL_INTERVAL if poll_interval is None else poll_interval
        self.poll_attempts = poll_attempts or settings.REPORT_POLL_ATTEMPTS
        self.timeout = timeout or settings.TELEPHONY_TIMEOUT
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Authorization": f"Bearer {self.api_key}", "Accept": "application/json"},
            timeout=self.timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self._client.aclose()
        self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("TelephonyReportClient must be used as an async context manager")
        return self._client

    async def create_report(self, start: datetime, end: datetime) -> str:
        try:
            response = await self.client.post(
                self.report_path,
                json={"start_time": _isoformat(start), "end_time": _isoformat(end)},
            )
        except httpx.HTTPError as e:
            telephony_report_failures.labels(stage="create").inc()
            raise ReportCreationError(f"Could not reach telephony reporting API: {e}") from e

        if not response.is_success:
            telephony_report_failures.labels(stage="create").inc()
            raise ReportCreationError(
                f"Call report request rejected with status {response.status_code}: {response.text[:200]}"
            )

        report_id = _payload(response).get("id")
        if not report_id:
            telephony_report_failures.labels(stage="create").inc()
            raise ReportCreationError("Call report request returned no report id")

        logger.info(f"Call report {report_id} requested for {_isoformat(start)} - {_isoformat(end)}")
        return str(report_id)

    async def get_report_status(self, report_id: str) -> Tuple[str, Optional[str]]:
        response = await self.client.get(f"{self.report_path}/{report_id}")
        response.raise_for_status()
        data = _payload(response)
        status = str(data.get("status") or "").lower()
        url = data.get("report_url") or data.get("download_url") or data.get("url")
        return status, url

    async def wait_for_report(self, report_id: str) -> str:
        """Wait one interval before each status check, so the ceiling is attempts x interval."""
        for attempt in range(1, self.poll_attempts + 1):
            await asyncio.sleep(self.poll_interval)
            try:
                status, url = await self.get_report_status(report_id)
            except httpx.HTTPError as e:
                telephony_report_failures.labels(stage="poll").inc()
                raise ReportFailedError(f"Polling call report {report_id} failed: {e}") from e

            if status in FAILED_STATUSES:
                telephony_report_failures.labels(stage="failed").inc()
                raise ReportFailedError(f"Call report {report_id} finished with status '{status}'")

            if status in FINISHED_STATUSES:
                if not url:
                    telephony_report_failures.labels(stage="failed").inc()
                    raise ReportFailedError(f"Call report {report_id} completed without a download URL")
                logger.info(f"Call report {report_id} ready after {attempt} polls")
                return url

            logger.debug(f"Call report {report_id} is '{status}' (poll {attempt}/{self.poll_attempts})")

        telephony_report_failures.labels(stage="timeout").inc()
        raise ReportTimeoutError(
            f"Call report {report_id} not ready after {self.poll_attempts} polls "
            f"({self.poll_attempts * self.poll_interval:.0f}s)"
        )

    async def download_report(self, url: str) -> Tuple[bytes, str]:
        request = self.client.build_request("GET", url)
        # Presigned storage URLs reject the provider credential.
        if urlparse(str(request.url)).netloc != urlparse(self.base_url).netloc:
            request.headers.pop("Authorization", None)
        try:
            response = await self.client.send(request)
        except httpx.HTTPError as e:
            telephony_report_failures.labels(stage="download").inc()
            raise ReportDownloadError(f"Call report download failed: {e}") from e

        if not response.is_success:
            telephony_report_failures.labels(stage="download").inc()
            raise ReportDownloadError(f"Call report download failed with status {response.status_code}")

        filename = urlparse(str(request.url)).path.rsplit("/", 1)[-1] or "report.csv"
        return response.content, filename

    async def fetch_call_records(self, start: datetime, end: datetime) -> List[CallRecord]:
        report_id = await self.create_report(start, end)
        url = await self.wait_for_report(report_id)
        content, filename = await self.download_report(url)
        try:
            return parse_call_report(content, filename)
        except SpreadsheetError as e:
            telephony_report_failures.labels(stage="download").inc()
            raise ReportDownloadError(f"Call report {report_id} could not be parsed: {e}") from e
