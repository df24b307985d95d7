import asyncio
import platform
import signal
from collections import deque
from enum import Enum
from typing import Any, Optional

from spanreed import settings as env
from spanreed.bridge.connection import ClientFactory, Connection
from spanreed.bridge.handlers import default_registry
from spanreed.bridge.host import Host
from spanreed.bridge.monitor import MonitorEmitter
from spanreed.bridge.registry import HandlerRegistry, HandlerResult
from spanreed.logger import PACKAGE_LOGGER, Logger, configure_logger, get_logger
from spanreed.protocol.envelope import (
    RequestEnvelope,
    ResponseEnvelope,
    decode_request,
    encode_response,
    )
from spanreed.protocol.errors import (
    ConfigurationFault,
    DecodeError,
    MethodNotFoundError,
    TransportFault,
    )
from spanreed.protocol.queues import reply_queue, task_queue
from spanreed.utils.bridge_configs import (
    ConnectionSettings,
    DispatchConfig,
    EnvironmentsConfig,
    )
from spanreed.utils.json_handlers import load_config


class LoopState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    READY = "ready"
    WAITING = "waiting"
    PROCESSING = "processing"
    FAULTED = "faulted"


class SpanreedBridge:
    """
    Polls the tenant's task queue, runs one request at a time through the
    handler registry and pushes the response onto the request's reply queue.

    Every fault stays inside the cycle that raised it; only `stop()` (or a
    termination signal) ends the loop.
    """

    MAX_PENDING_ERRORS = 100

    def __init__(
            self,
            host: Host,
            environments: Optional[EnvironmentsConfig] = None,
            registry: Optional[HandlerRegistry] = None,
            dispatch_config: Optional[DispatchConfig] = None,
            client_factory: Optional[ClientFactory] = None,
            name: Optional[str] = None,
        ):

        self.name = name if isinstance(name, str) else "spanreed-bridge"
        self.logger: Logger = get_logger(self.name)

        self.host = host
        self.environments = environments or EnvironmentsConfig()
        self.registry = registry or default_registry()
        self.dispatch_config = dispatch_config or DispatchConfig()

        self.connection = Connection(client_factory=client_factory, logger=self.logger)
        self.connection.on_error = self._record_transport_error
        self.monitor = MonitorEmitter(self.connection, logger=self.logger)

        self.state = LoopState.DISCONNECTED

        # Transport errors waiting for the next successful connection
        self._pending_errors: deque[str] = deque(maxlen=self.MAX_PENDING_ERRORS)
        self._stop: asyncio.Event = asyncio.Event()
        self._main_task: Optional[asyncio.Task] = None
        self._unconfigured_notified = False

    # ==== CONFIGURATION ====

    def _apply_config(self, config: dict[str, Any]):

        logger_cfg = config.get("logger", {})
        configure_logger(self.logger, logger_cfg)
        configure_logger(get_logger(PACKAGE_LOGGER), logger_cfg)

        for problem in self.environments.merge_in(**config):
            self.logger.warning(problem)

        if env.SPANREED_ENV:
            self.environments.active = env.SPANREED_ENV
        for problem in self.environments.override(env.SPANREED_USER_ID, env.SPANREED_REDIS_URL):
            self.logger.warning(problem)

        hp_config = config.get("hyper_parameters", {})
        for problem in self.dispatch_config.merge_in(**hp_config.get("dispatch", {})):
            self.logger.warning(problem)

    @property
    def settings(self) -> ConnectionSettings:
        """Active connection settings; read once per cycle."""
        return self.environments.current

    def reconfigure(self, active: Optional[str] = None, settings: Optional[ConnectionSettings] = None):
        """
        Switch the active environment and/or replace its settings. Takes
        effect on the next cycle; a new endpoint forces a reconnect.
        """
        if active is not None:
            self.environments.active = active
        if settings is not None:
            self.environments.environments[self.environments.active] = settings
        self._unconfigured_notified = False

    def _check_configured(self, settings: ConnectionSettings):
        if settings.is_configured:
            self._unconfigured_notified = False
            return
        notices = settings.problems()
        if not self._unconfigured_notified:
            for notice in notices:
                self.logger.error(notice)
            self._unconfigured_notified = True
        raise ConfigurationFault(" ".join(notices))

    # ==== DISPATCH ====

    async def handle(self, request: RequestEnvelope) -> ResponseEnvelope:
        """Route one request to its handler; never raises."""
        try:
            handler = self.registry.lookup(request.method)
        except MethodNotFoundError as e:
            self.logger.warning(f"Request {request.request_id}: {e}")
            return ResponseEnvelope.failure(str(e))

        try:
            outcome = await handler.fn(self.host, request.params)
        except Exception as e:
            self.logger.exception(f"Request {request.method} ({request.request_id}) raised: {e}")
            return ResponseEnvelope.failure(f"Request {request.method} failed: {e}")

        if not isinstance(outcome, HandlerResult):
            return ResponseEnvelope.failure(f"Request {request.method} failed: handler returned {type(outcome).__name__}")
        return ResponseEnvelope(success=outcome.success, result=outcome.value)

    def _record_transport_error(self, fault: TransportFault):
        self._pending_errors.append(str(fault))

    async def _flush_pending_errors(self, user_id: int):
        while self._pending_errors:
            message = self._pending_errors.popleft()
            await self.monitor.emit_error(user_id, message)

    async def run_cycle(self) -> bool:
        """
        One pass: connect, heartbeat, pop, dispatch, reply.

        Returns True when a message was popped (even if it could not be
        decoded), False on an idle timeout. Raises TransportFault or
        ConfigurationFault; the caller decides how long to back off.
        """
        settings = self.settings
        self._check_configured(settings)
        user_id = settings.user_id

        if not self.connection.is_live or self.connection.url != settings.queue_url:
            self.state = LoopState.CONNECTING
        await self.connection.ensure(settings)
        self.state = LoopState.READY

        await self._flush_pending_errors(user_id)
        await self.monitor.emit_heartbeat(user_id)

        self.state = LoopState.WAITING
        raw = await self.connection.blpop(task_queue(user_id), timeout=self.dispatch_config.poll_timeout_seconds)
        if raw is None:
            self.state = LoopState.READY
            return False

        self.state = LoopState.PROCESSING
        try:
            request = decode_request(raw)
        except DecodeError as e:
            self.logger.warning(f"Dropping malformed request: {e}")
            await self.monitor.emit_error(user_id, f"malformed request: {e}")
            self.state = LoopState.READY
            return True

        self.logger.debug(f"Processing {request.method} ({request.request_id})")
        response = await self.handle(request)
        await self.connection.lpush(reply_queue(user_id, request.request_id), encode_response(response))

        self.state = LoopState.READY
        return True

    # ==== LOOP LIFE CYCLE ====

    async def _sleep(self, delay: float):
        """Sleep up to `delay` seconds, waking early on stop()."""
        if delay <= 0:
            await asyncio.sleep(0)
            return
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass

    async def run_forever(self):
        self._stop.clear()
        self._main_task = asyncio.current_task()

        try:
            self._check_configured(self.settings)
        except ConfigurationFault:
            # Refuse to poll until the user configures the environment
            return

        self.logger.info(f"Polling {task_queue(self.settings.user_id)}")
        try:
            while not self._stop.is_set():
                try:
                    found = await self.run_cycle()
                    delay = 0 if found else self.dispatch_config.idle_delay_seconds

                except ConfigurationFault:
                    self.state = LoopState.DISCONNECTED
                    await self.connection.close()
                    delay = self.dispatch_config.retry_delay_seconds

                except TransportFault as e:
                    self.state = LoopState.FAULTED
                    self.logger.error(
                        f"[{type(e).__name__}: {e}] "
                        f"sleeping {self.dispatch_config.retry_delay_seconds}s before reconnecting"
                    )
                    await self.connection.close()
                    self.state = LoopState.DISCONNECTED
                    delay = self.dispatch_config.retry_delay_seconds

                except Exception as e:
                    self.state = LoopState.FAULTED
                    self.logger.exception(f"Unexpected error during dispatch cycle: {e}")
                    self._pending_errors.append(f"dispatch cycle failed: {e}")
                    await self.connection.close()
                    self.state = LoopState.DISCONNECTED
                    delay = self.dispatch_config.retry_delay_seconds

                await self._sleep(delay)
        finally:
            await self.connection.close()
            self.state = LoopState.DISCONNECTED
            self._main_task = None

    def stop(self):
        """Stop rescheduling. The cycle in flight finishes first."""
        self._stop.set()

    def shutdown(self):
        """Stop and abandon the cycle in flight (it may be blocked on the queue)."""
        self.logger.info("Bridge is shutting down...")
        self.stop()
        if self._main_task is not None:
            self._main_task.cancel()

    def set_termination_signals(self, loop: asyncio.AbstractEventLoop):
        """
        Install SIGINT/SIGTERM handlers onto the loop:
            - SIGINT: interupt signal for Ctrl+C | value = 2
            - SIGTERM: system/process-based termination | value = 15
        """
        if platform.system() != "Windows":
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.add_signal_handler(sig, self.shutdown)

    def run(self, config_path: Optional[str] = None):
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        try:
            self._apply_config(load_config(config_path))
            self.set_termination_signals(loop)
            loop.run_until_complete(self.run_forever())
        except (asyncio.CancelledError, KeyboardInterrupt):
            pass
        finally:
            loop.close()
            self.logger.info("Bridge exited cleanly.")
