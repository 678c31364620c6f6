# contest_portal/services/realtime_client.py
from typing import Any, Dict, List, Tuple

import requests

from contest_portal.utils.logging import get_logger
from contest_portal.utils.settings import REALTIME_RELAY_URL, REALTIME_TIMEOUT_SECONDS

logger = get_logger(__name__)

Event = Tuple[str, Dict[str, Any]]


class RealtimeClient:
    """
    Broadcast do dashboardow adminow przez zewnetrzny relay (websocket).
    Brak skonfigurowanego URL = no-op.

    Jeden POST na wywolanie (wszystkie eventy naraz), bez ponawiania.
    """

    def __init__(self, relay_url: str | None = None, timeout: int = REALTIME_TIMEOUT_SECONDS):
        self.relay_url = (relay_url if relay_url is not None else REALTIME_RELAY_URL).rstrip("/")
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return bool(self.relay_url)

    def emit(self, events: List[Event]) -> bool:
        if not events:
            return False
        names = ",".join(name for name, _ in events)
        if not self.enabled:
            logger.debug(f"Realtime relay not configured, skipping {names}")
            return False

        logger.info(f"RealtimeClient POST {self.relay_url} events={names}")
        resp = requests.post(
            self.relay_url,
            json={"events": [{"event": name, "payload": payload} for name, payload in events]},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return True
