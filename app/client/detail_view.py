"""
Vista de detalle de reservas con supresión de respuestas obsoletas.

Cada vista tiene su propio `DetailFetchGuard`: un contador monótono que
identifica cada petición de detalle. Una respuesta solo se aplica si su
ticket sigue siendo el valor vigente del contador; cambiar de pestaña,
cerrar el detalle o salir de la vista incrementan el contador y dejan
obsoletas las peticiones en vuelo (que no se abortan físicamente).
"""
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from app.client.api_client import ApiError, GymScheduleClient

logger = logging.getLogger(__name__)


class DetailFetchGuard:
    def __init__(self) -> None:
        self._counter = 0

    @property
    def current(self) -> int:
        return self._counter

    def issue(self) -> int:
        """Nuevo ticket: el valor del contador tras incrementarlo."""
        self._counter += 1
        return self._counter

    def is_current(self, ticket: int) -> bool:
        return ticket == self._counter

    def invalidate(self) -> None:
        """Deja obsoletos todos los tickets emitidos hasta ahora."""
        self._counter += 1


class BookingDetailView:
    """
    Estado de la pantalla de reservas: pestaña activa y detalle seleccionado.
    """

    def __init__(
        self,
        fetch_detail: Callable[[int], Awaitable[Dict[str, Any]]],
        tab: str = "upcoming",
    ):
        self._fetch_detail = fetch_detail
        self._guard = DetailFetchGuard()
        self.tab = tab
        self.selected: Optional[Dict[str, Any]] = None
        self.error: Optional[str] = None
        self.loading = False

    @classmethod
    def for_client(cls, client: GymScheduleClient, **kwargs) -> "BookingDetailView":
        return cls(client.get_booking, **kwargs)

    @property
    def guard(self) -> DetailFetchGuard:
        return self._guard

    async def view(self, booking_id: int) -> bool:
        """
        Pide el detalle de una reserva. Devuelve True si el resultado (o el
        error) se aplicó, False si llegó obsoleto y se descartó.

        Los errores de la API y los de red se tratan igual: solo se muestran
        si la petición sigue vigente.
        """
        ticket = self._guard.issue()
        self.loading = True
        self.error = None
        try:
            detail = await self._fetch_detail(booking_id)
        except (ApiError, httpx.HTTPError) as e:
            if not self._guard.is_current(ticket):
                logger.debug(f"Error obsoleto descartado (ticket {ticket}): {e}")
                return False
            self.selected = None
            self.error = e.message if isinstance(e, ApiError) else f"Network error: {e}"
            self.loading = False
            return True

        if not self._guard.is_current(ticket):
            logger.debug(f"Detalle obsoleto descartado (ticket {ticket}, vigente {self._guard.current})")
            return False
        self.selected = detail
        self.loading = False
        return True

    def switch_tab(self, tab: str) -> None:
        self._guard.invalidate()
        self.tab = tab
        self._reset()

    def close(self) -> None:
        self._guard.invalidate()
        self._reset()

    def navigate_away(self) -> None:
        self.close()

    def _reset(self) -> None:
        self.selected = None
        self.error = None
        self.loading = False
