"""
Cliente asíncrono de la API de reservas, usado por las vistas del cliente.
"""
import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional
from urllib.parse import unquote

import httpx

logger = logging.getLogger(__name__)

_FILENAME_RE = re.compile(r'filename="?([^";]+)"?')
_FILENAME_UTF8_RE = re.compile(r"filename\*=utf-8''([^;\s]+)", re.IGNORECASE)


def filename_from_disposition(header: str, default: str = "export.xml") -> str:
    """Nombre de fichero de `Content-Disposition`, prefiriendo `filename*` si viene."""
    match = _FILENAME_UTF8_RE.search(header)
    if match:
        return unquote(match.group(1))
    match = _FILENAME_RE.search(header)
    return match.group(1) if match else default


class ApiError(Exception):
    """Respuesta no 2xx de la API, con el `message` del cuerpo JSON."""

    def __init__(self, status: int, message: str):
        self.status = status
        self.message = message
        super().__init__(f"{status}: {message}")


@dataclass
class ExportDownload:
    filename: str
    content: str


class GymScheduleClient:
    def __init__(
        self,
        base_url: str,
        key: Optional[str] = None,
        *,
        api_prefix: str = "/api/v1",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.key = key
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/") + api_prefix,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "GymScheduleClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _headers(self) -> Dict[str, str]:
        return {"x-auth-key": self.key} if self.key else {}

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        response = await self._client.request(method, path, headers=self._headers(), **kwargs)
        if response.is_success:
            return response
        try:
            message = response.json().get("message", response.reason_phrase)
        except ValueError:
            message = response.text or response.reason_phrase
        logger.debug(f"{method} {path} -> {response.status_code}: {message}")
        raise ApiError(response.status_code, message)

    @staticmethod
    def _params(**params: Any) -> Dict[str, Any]:
        # httpx enviaría "None"; los parámetros ausentes se omiten
        cleaned = {}
        for name, value in params.items():
            if value is None:
                continue
            if isinstance(value, bool):
                value = "true" if value else "false"
            elif isinstance(value, date):
                value = value.isoformat()
            cleaned[name] = value
        return cleaned

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        """Inicia sesión y guarda la clave para las siguientes peticiones."""
        response = await self._request("POST", "/auth/login", json={"email": email, "password": password})
        body = response.json()
        self.key = body["key"]
        return body["user"]

    async def me(self) -> Dict[str, Any]:
        return (await self._request("GET", "/auth/me")).json()

    async def list_my_bookings(self, include_past: bool = False) -> List[Dict[str, Any]]:
        response = await self._request("GET", "/bookings/self", params=self._params(includePast=include_past))
        return response.json()

    async def get_booking(self, booking_id: int) -> Dict[str, Any]:
        return (await self._request("GET", f"/bookings/{booking_id}")).json()

    async def create_booking(self, session_id: int, member_id: Optional[int] = None) -> Dict[str, Any]:
        payload = {"sessionId": session_id}
        if member_id is not None:
            payload["memberId"] = member_id
        return (await self._request("POST", "/bookings", json=payload)).json()

    async def cancel_booking(self, booking_id: int) -> Dict[str, Any]:
        return (await self._request("DELETE", f"/bookings/{booking_id}")).json()

    async def list_sessions(self) -> List[Dict[str, Any]]:
        return (await self._request("GET", "/sessions")).json()

    async def list_my_sessions(self) -> List[Dict[str, Any]]:
        return (await self._request("GET", "/sessions/self")).json()

    async def _download(self, path: str, params: Dict[str, Any]) -> ExportDownload:
        response = await self._request("GET", path, params=params)
        filename = filename_from_disposition(response.headers.get("content-disposition", ""))
        return ExportDownload(filename=filename, content=response.text)

    async def export_booking_history(
        self, only_past: bool = False, member_id: Optional[int] = None
    ) -> ExportDownload:
        return await self._download(
            "/bookings/export/xml/history",
            self._params(onlyPast=only_past, memberId=member_id),
        )

    async def export_weekly_sessions(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        trainer_id: Optional[int] = None,
    ) -> ExportDownload:
        return await self._download(
            "/sessions/export/xml/weekly",
            self._params(startDate=start_date, endDate=end_date, trainerId=trainer_id),
        )
