"""
Telematics gateway for remote vehicle commands.

Translates the app's command vocabulary (unlock, lock, horn,
flash_lights, status) into the request format of the configured
provider. Supported providers: ``simulation``, ``invers``, ``geotab``,
``autopi`` and ``custom``.

Provider errors are reported as an unsuccessful ``TelematicsResult``;
callers decide what a failed command means for the booking.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict

import requests
from django.conf import settings  # type: ignore
from django.utils import timezone  # type: ignore

logger = logging.getLogger(__name__)

COMMANDS = ("unlock", "lock", "horn", "flash_lights", "status")

INVERS_COMMANDS = {
    "unlock": "UNLOCK_DOORS",
    "lock": "LOCK_DOORS",
    "horn": "HORN",
    "flash_lights": "FLASH_LIGHTS",
    "status": "GET_STATUS",
}

GEOTAB_COMMANDS: Dict[str, Dict[str, Any]] = {
    "unlock": {"typeName": "TextMessage", "messageContent": {"contentType": "IoxOutput", "channel": 1, "isRelayOn": True}},
    "lock": {"typeName": "TextMessage", "messageContent": {"contentType": "IoxOutput", "channel": 1, "isRelayOn": False}},
    "horn": {"typeName": "TextMessage", "messageContent": {"contentType": "IoxOutput", "channel": 2, "duration": 3}},
    "flash_lights": {"typeName": "TextMessage", "messageContent": {"contentType": "IoxOutput", "channel": 3, "duration": 5}},
    "status": {"typeName": "DeviceStatusInfo"},
}

AUTOPI_COMMANDS: Dict[str, Dict[str, Any]] = {
    "unlock": {"command": "obd.commands", "kwargs": {"cmd": "UNLOCK_DOORS"}},
    "lock": {"command": "obd.commands", "kwargs": {"cmd": "LOCK_DOORS"}},
    "horn": {"command": "audio.speak", "kwargs": {"text": "beep", "volume": 100}},
    "flash_lights": {"command": "obd.commands", "kwargs": {"cmd": "FLASH_LIGHTS"}},
    "status": {"command": "obd.status"},
}


@dataclass
class TelematicsResult:
    success: bool
    message: str
    data: Dict[str, Any] = field(default_factory=dict)


class TelematicsGateway:
    """Sends commands to a vehicle through the configured provider."""

    def __init__(
        self,
        provider: str | None = None,
        api_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ):
        self.provider = (provider or getattr(settings, "TELEMATICS_PROVIDER", "simulation")).lower()
        self.api_url = (api_url if api_url is not None else getattr(settings, "TELEMATICS_API_URL", "")).rstrip("/")
        self.api_key = api_key if api_key is not None else getattr(settings, "TELEMATICS_API_KEY", "")
        self.timeout = timeout or getattr(settings, "TELEMATICS_TIMEOUT", 10)
        self.session = session or requests.Session()

        self._dispatch: Dict[str, Callable[[str, str], TelematicsResult]] = {
            "simulation": self._simulate,
            "invers": self._invers,
            "geotab": self._geotab,
            "autopi": self._autopi,
            "custom": self._custom,
        }
        if self.provider not in self._dispatch:
            raise ValueError(f"Unknown telematics provider: {self.provider}")

    def send(self, device_id: str, command: str) -> TelematicsResult:
        """Execute ``command`` on the vehicle identified by ``device_id``."""
        if command not in COMMANDS:
            raise ValueError(f"Unsupported vehicle command: {command}")

        logger.info(f"[TELEMATICS] {self.provider}: {command} for vehicle {device_id}")
        result = self._dispatch[self.provider](device_id, command)
        if not result.success:
            logger.warning(f"[TELEMATICS] {command} for vehicle {device_id} failed: {result.message}")
        return result

    # --- providers -----------------------------------------------------------

    def _simulate(self, device_id: str, command: str) -> TelematicsResult:
        return TelematicsResult(
            success=True,
            message=f"Simulation: {command} erfolgreich ausgeführt",
            data={"executed_at": timezone.now().isoformat(), "simulated": True},
        )

    def _invers(self, device_id: str, command: str) -> TelematicsResult:
        return self._post(
            f"{self.api_url}/vehicles/{device_id}/commands",
            {"command": INVERS_COMMANDS[command], "timestamp": timezone.now().isoformat()},
            headers=self._bearer(),
        )

    def _geotab(self, device_id: str, command: str) -> TelematicsResult:
        params: Dict[str, Any] = {
            "credentials": {
                "database": getattr(settings, "GEOTAB_DATABASE", ""),
                "userName": getattr(settings, "GEOTAB_USERNAME", ""),
                "password": self.api_key,
            },
            "device": {"id": device_id},
        }
        params.update(GEOTAB_COMMANDS[command])
        payload = {"method": "Get" if command == "status" else "Add", "params": params}
        return self._post(f"{self.api_url}/apiv1", payload)

    def _autopi(self, device_id: str, command: str) -> TelematicsResult:
        return self._post(
            f"{self.api_url}/dongle/{device_id}/execute/",
            AUTOPI_COMMANDS[command],
            headers=self._bearer(),
        )

    def _custom(self, device_id: str, command: str) -> TelematicsResult:
        return self._post(
            f"{self.api_url}/command",
            {"vehicle_id": device_id, "command": command},
            headers=self._bearer(),
        )

    # --- helpers -------------------------------------------------------------

    def _bearer(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    def _post(self, url: str, payload: Dict[str, Any], headers: Dict[str, str] | None = None) -> TelematicsResult:
        if not self.api_url:
            return TelematicsResult(success=False, message="Telematik-API nicht konfiguriert")

        try:
            response = self.session.post(url, json=payload, headers=headers or {}, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"[TELEMATICS] {self.provider} request failed: {e}")
            return TelematicsResult(success=False, message="Verbindung zum Fahrzeug fehlgeschlagen")

        if not response.ok:
            logger.error(f"[TELEMATICS] {self.provider} API error {response.status_code}: {response.text[:200]}")
            return TelematicsResult(success=False, message="Fehler bei der Fahrzeugkommunikation")

        try:
            data = response.json()
        except ValueError:
            data = {}
        return TelematicsResult(success=True, message="Befehl erfolgreich", data=data if isinstance(data, dict) else {"result": data})


def get_gateway() -> TelematicsGateway:
    return TelematicsGateway()
