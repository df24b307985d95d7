from typing import Optional

from spanreed.bridge.connection import Connection
from spanreed.logger import Logger, get_logger
from spanreed.protocol.envelope import MonitorEvent, encode_event
from spanreed.protocol.errors import TransportFault
from spanreed.protocol.queues import monitor_queue


class MonitorEmitter:
    """
    Fire-and-forget heartbeat/error events on the monitor queue. Shares the
    dispatch loop's connection; a failed publish is logged and dropped.
    """

    def __init__(self, connection: Connection, logger: Optional[Logger] = None):
        self.connection = connection
        self.logger = logger or get_logger(__name__)

    async def emit_heartbeat(self, user_id: int) -> bool:
        return await self._emit(MonitorEvent.heartbeat(user_id))

    async def emit_error(self, user_id: int, message: str) -> bool:
        return await self._emit(MonitorEvent.error(user_id, message))

    async def _emit(self, event: MonitorEvent) -> bool:
        try:
            # Not reported back through on_error: that would queue another monitor event
            await self.connection.lpush(monitor_queue(event.user_id), encode_event(event), report=False)
        except TransportFault as e:
            self.logger.warning(f"Dropped {event.kind} monitor event: {e}")
            return False
        return True
