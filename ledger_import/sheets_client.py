import logging
from urllib.parse import quote

import httpx

from ledger_import.errors import SourceUnavailable


logger = logging.getLogger(__name__)

Row = list[str | None]


class SheetsClient:
    """Google Sheets values API, one GET per call, no retries or paging."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://sheets.googleapis.com",
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def values_url(self, sheet_id: str, cell_range: str) -> str:
        return f"{self.base_url}/v4/spreadsheets/{quote(sheet_id, safe='')}/values/{quote(cell_range, safe='')}"

    def fetch_values(self, sheet_id: str, cell_range: str) -> list[Row]:
        url = self.values_url(sheet_id, cell_range)
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.get(url, params={"key": self.api_key})
        except httpx.HTTPError as exc:
            raise SourceUnavailable(f"Google Sheets request failed: {exc}") from exc

        if not response.is_success:
            raise SourceUnavailable(
                f"Google Sheets request failed: {response.status_code} {response.reason_phrase} - {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise SourceUnavailable(
                "Google Sheets response is not valid JSON",
                status_code=response.status_code,
                body=response.text,
            ) from exc

        values = payload.get("values") if isinstance(payload, dict) else None
        if not isinstance(values, list):
            raise SourceUnavailable(
                "Google Sheets response is missing the 'values' array.",
                status_code=response.status_code,
                body=response.text,
            )

        logger.info("fetched sheet range", extra={"sheet_range": cell_range, "rows": len(values)})
        return [row if isinstance(row, list) else [] for row in values]
