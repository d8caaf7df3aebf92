"""D-Bus service for GUI communication.

D-Bus methods use PascalCase per D-Bus convention, and type signatures
like "as" and "(su)" are D-Bus protocol types, not Python syntax.
"""

from __future__ import annotations

import asyncio
import json
import logging

from dbus_next.aio import MessageBus
from dbus_next.service import ServiceInterface, method, signal
from dbus_next import BusType

from heft.core.scanner import DirectoryScanner, ScanError
from heft.core.session import ScanSession
from heft.core.tracker import Tracker
from heft.serialize import outcome_to_dict, result_to_dict
from heft.settings import Settings
from heft.storage import load_history

log = logging.getLogger(__name__)

_BUS_NAME = "io.github.heft"
_OBJECT_PATH = "/io/github/heft"
_INTERFACE = "io.github.heft.Manager"


# noinspection PyPep8Naming
class HeftDBusService(ServiceInterface):
    """D-Bus service interface for Heft.

    The service owns one :class:`ScanSession`; the GUI owns the selection
    and sends it back with ``DeleteAll``.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        super().__init__(_INTERFACE)
        settings = settings or Settings.instance()
        self._tracker = Tracker()
        self._session = ScanSession(scanner=DirectoryScanner.from_settings(settings), tracker=self._tracker)

    @method()
    async def Scan(self, path: "s", depth: "u") -> "s":  # type: ignore[override]
        """Scan a directory, returning the result as JSON."""
        return json.dumps(await self.run_scan(path, depth))

    async def run_scan(self, path: str, depth: int) -> dict:
        """Scan on the default executor so the bus loop keeps serving calls."""
        loop = asyncio.get_running_loop()
        try:
            result = await loop.run_in_executor(None, self._session.scan, path, depth)
        except ScanError as exc:
            return {"error": str(exc)}
        self.ScanFinished(str(result.root), len(result))
        return result_to_dict(result)

    @method()
    def DeleteAll(self, paths: "as") -> "s":  # type: ignore[override]
        """Delete the given paths, returning the outcome as JSON."""
        outcome = self._session.delete(paths)
        self._tracker.save_session()
        self.FilesDeleted(outcome.bytes_freed, outcome.failed_paths)

        data = outcome_to_dict(outcome)
        data["freed_total"] = self._session.freed_total
        data["message"] = outcome.summary_message()
        return json.dumps(data)

    @method()
    def GetStats(self, period: "s") -> "s":  # type: ignore[override]
        """Get statistics for a time period."""
        return json.dumps(self._tracker.get_stats(period))

    @method()
    def GetHistory(self) -> "s":  # type: ignore[override]
        """Get full session history."""
        return json.dumps(load_history())

    @signal()
    def ScanFinished(self, root: str, file_count: int) -> "(su)":  # type: ignore[override]
        return [root, file_count]

    @signal()
    def FilesDeleted(self, bytes_freed: int, failed: list[str]) -> "(tas)":  # type: ignore[override]
        return [bytes_freed, failed]


async def run_service() -> None:
    """Start the D-Bus service."""
    bus = await MessageBus(bus_type=BusType.SESSION).connect()
    service = HeftDBusService()
    bus.export(_OBJECT_PATH, service)
    await bus.request_name(_BUS_NAME)
    log.info("D-Bus service started on %s", _BUS_NAME)
    await bus.wait_for_disconnect()


def start_service() -> None:
    """Entry point to start the D-Bus service."""
    asyncio.run(run_service())
