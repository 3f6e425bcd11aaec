"""Server lifecycle: bind, serve, and shut down gracefully on signals.

States:

    STARTING -> SERVING -> SHUTTING_DOWN -> STOPPED
        |          |
        +----------+-----> FAILED

A bind failure or a serve loop that ends on its own is fatal. After a
termination signal the serve loop gets a bounded grace period to drain
in-flight requests; overrunning it is reported as ShutdownTimeoutError and
in-flight work is left for the process supervisor to deal with.
"""

import asyncio
import logging
import signal
from enum import Enum

from aiohttp import web

logger = logging.getLogger(__name__)

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class LifecycleState(Enum):
    """Server lifecycle states."""

    STARTING = "starting"
    SERVING = "serving"
    SHUTTING_DOWN = "shutting_down"
    STOPPED = "stopped"
    FAILED = "failed"


class ServerError(Exception):
    """Base class for fatal server lifecycle errors."""


class BindError(ServerError):
    """Raised when the listening socket cannot be bound."""


class ServeLoopError(ServerError):
    """Raised when the serve loop terminates without being asked to."""


class ShutdownTimeoutError(ServerError):
    """Raised when in-flight requests outlive the shutdown grace period."""


class ServerLifecycle:
    """Runs an aiohttp application through its lifecycle.

    Usage:
        lifecycle = ServerLifecycle(app, "0.0.0.0", 9327, shutdown_timeout=5)
        await lifecycle.run()  # returns after a clean, signal-driven stop
    """

    def __init__(
        self,
        app: web.Application,
        host: str,
        port: int,
        *,
        shutdown_timeout: float,
    ) -> None:
        """Initialize the lifecycle.

        Args:
            app: Application to serve
            host: Interface to bind to
            port: Port to bind to (0 picks a free port)
            shutdown_timeout: Grace period in seconds for in-flight requests
        """
        self._runner = web.AppRunner(app)
        self._host = host
        self._port = port
        self._shutdown_timeout = shutdown_timeout
        self._state = LifecycleState.STARTING
        self._shutdown_requested = asyncio.Event()
        self._serve_task: asyncio.Task[None] | None = None
        self._bound_port: int | None = None
        self._installed_signals: list[signal.Signals] = []

    @property
    def state(self) -> LifecycleState:
        """Current lifecycle state."""
        return self._state

    @property
    def bound_port(self) -> int | None:
        """Port actually bound, once serving."""
        return self._bound_port

    @property
    def shutdown_requested(self) -> bool:
        """True once a shutdown has been requested."""
        return self._shutdown_requested.is_set()

    async def run(self) -> None:
        """Start serving and block until a signal-driven shutdown completes.

        Raises:
            BindError: If the socket cannot be bound
            ServeLoopError: If the serve loop dies on its own
            ShutdownTimeoutError: If draining exceeds the grace period
        """
        await self.start()
        self.install_signal_handlers()
        try:
            await self.wait()
        finally:
            self.remove_signal_handlers()

    async def start(self) -> None:
        """Bind the listening socket and launch the serve loop."""
        if self._state is not LifecycleState.STARTING:
            raise RuntimeError(f"Cannot start from state {self._state.value}")

        await self._runner.setup()
        site = web.TCPSite(self._runner, self._host, self._port)
        try:
            await site.start()
        except OSError as e:
            self._state = LifecycleState.FAILED
            await self._runner.cleanup()
            raise BindError(f"Failed to bind {self._host}:{self._port}: {e}") from e

        self._bound_port = self._runner.addresses[0][1]
        self._serve_task = asyncio.create_task(self._serve())
        self._state = LifecycleState.SERVING
        logger.info(f"Serving on {self._host}:{self._bound_port}")

    def request_shutdown(self) -> None:
        """Ask the server to shut down. Repeated calls are no-ops."""
        self._shutdown_requested.set()

    async def wait(self) -> None:
        """Wait for shutdown to be requested, then drain within the grace period."""
        if self._serve_task is None:
            raise RuntimeError("Server is not running")

        serve_task = self._serve_task
        signal_task = asyncio.create_task(self._shutdown_requested.wait())
        try:
            await asyncio.wait(
                {serve_task, signal_task},
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            signal_task.cancel()

        if not self.shutdown_requested:
            self._state = LifecycleState.FAILED
            cause = None if serve_task.cancelled() else serve_task.exception()
            raise ServeLoopError("Serve loop exited unexpectedly") from cause

        self._state = LifecycleState.SHUTTING_DOWN
        logger.info(
            f"Shutdown requested, waiting up to {self._shutdown_timeout}s "
            "for in-flight requests",
        )

        try:
            await asyncio.wait_for(asyncio.shield(serve_task), self._shutdown_timeout)
        except TimeoutError:
            raise ShutdownTimeoutError(
                f"Graceful shutdown timed out after {self._shutdown_timeout}s",
            ) from None
        except Exception as e:
            self._state = LifecycleState.FAILED
            raise ServeLoopError(f"Serve loop failed during shutdown: {e}") from e

        self._state = LifecycleState.STOPPED
        logger.info("Server stopped")

    async def abort(self) -> None:
        """Cancel a shutdown that is still draining and release the runner."""
        if self._serve_task is not None and not self._serve_task.done():
            self._serve_task.cancel()
            try:
                await self._serve_task
            except asyncio.CancelledError:
                pass
        if self._runner.server is not None:
            await self._runner.cleanup()

    def install_signal_handlers(self) -> list[signal.Signals]:
        """Route SIGINT and SIGTERM to request_shutdown().

        Returns:
            Signals that now have a handler
        """
        loop = asyncio.get_running_loop()
        for sig in SHUTDOWN_SIGNALS:
            try:
                loop.add_signal_handler(sig, self._on_signal, sig)
            except (NotImplementedError, RuntimeError):
                # Windows event loops and non-main threads
                logger.debug(f"Cannot install handler for {sig.name}")
                continue
            self._installed_signals.append(sig)
        return list(self._installed_signals)

    def remove_signal_handlers(self) -> None:
        """Undo install_signal_handlers()."""
        loop = asyncio.get_running_loop()
        for sig in self._installed_signals:
            loop.remove_signal_handler(sig)
        self._installed_signals.clear()

    def _on_signal(self, sig: signal.Signals) -> None:
        if not self.shutdown_requested:
            logger.info(f"Received {sig.name}")
        self.request_shutdown()

    async def _serve(self) -> None:
        await self._shutdown_requested.wait()
        await self._runner.cleanup()
