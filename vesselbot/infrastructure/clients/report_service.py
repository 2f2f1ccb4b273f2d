from typing import Any, Dict, Optional
import httpx
import structlog

from vesselbot.domain.errors import ReportError

logger = structlog.get_logger(__name__)


class HttpReportService:
    """Client for the service that renders recommendation spreadsheets.

    ``POST {base}/downloads`` answers ``{"url": ...}``; ``POST {base}/emails``
    renders the same report and mails it.
    """

    def __init__(self, base_url: str, timeout: float = 20.0, client: Optional[httpx.AsyncClient] = None):
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self):
        await self._client.aclose()

    async def _post(self, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = await self._client.post(f"{self.base_url}{path}", json=body)
            response.raise_for_status()
            return response.json() if response.content else {}
        except httpx.HTTPStatusError as e:
            raise ReportError(f"Report service returned status {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise ReportError(f"Report service request failed: {e!r}") from e
        except ValueError as e:
            raise ReportError("Report service returned invalid JSON") from e

    @staticmethod
    def _report_body(payload: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "vessel_name": payload.get("vessel_name"),
            "vessel_identifier": payload.get("vessel_identifier"),
            "vessel_data": payload.get("vessel_data") or {},
            "recommendations_data": payload.get("recommendations_data") or {},
        }

    async def create_download_link(self, payload: Dict[str, Any]) -> str:
        data = await self._post("/downloads", self._report_body(payload))
        url = data.get("url") or data.get("download_url")
        if not url:
            raise ReportError("Report service did not return a download URL")
        return url

    async def email_report(self, recipient: str, payload: Dict[str, Any], summary: Dict[str, Any]) -> None:
        body = self._report_body(payload)
        body.update({"recipient_email": recipient, "summary": summary})
        await self._post("/emails", body)
        logger.info("Report email requested", vessel=payload.get("vessel_name"))
