"""
Main scanner engine orchestrator.

Coordinates all pipeline components: the ticker stream feeding the quote
store, the isolated scan worker, and the renderer that validates, scores
and publishes each candidate.
"""

import asyncio
import logging
import signal
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from triscan.config.settings import Settings
from triscan.core.event_bus import Event, EventBus, EventType
from triscan.core.types import CycleCandidate, DepthSource, Snapshot
from triscan.display.ledger import OpportunityLedger
from triscan.display.render import OpportunityRenderer
from triscan.exchange.client import BinanceClient
from triscan.market.feed import QuoteFeed
from triscan.market.quotes import DispatchThrottle, QuoteDispatcher, QuoteStore
from triscan.market.websocket import TickerStream
from triscan.strategy.scanner import ScanWorker
from triscan.strategy.scorer import ConfidenceScorer
from triscan.strategy.validator import DepthValidator
from triscan.telemetry.logger import AsyncLogger, setup_logging
from triscan.telemetry.metrics import MetricsCollector
from triscan.telemetry.reporter import CLIReporter, PipelineState
from triscan.utils.time import LatencyTimer


logger = logging.getLogger(__name__)


class ScannerEngine:
    """
    Main scanner orchestrator.

    Manages the complete lifecycle of:
    - Market data ingestion
    - Throttled snapshot dispatch to the scan worker
    - Depth validation and scoring
    - The opportunity ledger and its change feed
    - Telemetry and reporting
    """

    def __init__(
        self,
        settings: Settings,
        *,
        depth_client: DepthSource | None = None,
        scan_worker: ScanWorker | None = None,
        scorer: ConfidenceScorer | None = None,
        bus: EventBus | None = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            settings: Application settings.
            depth_client: Depth source; a BinanceClient by default.
            scan_worker: Scan worker; a one-process pool by default.
            scorer: Confidence scorer; loaded from settings.model_url by default.
            bus: Event bus shared with display sinks.
        """
        self._settings = settings
        self._running = False
        self._shutdown_event = asyncio.Event()

        # Injected or built in setup
        self._depth_client = depth_client
        self._owns_client = depth_client is None
        self._scan_worker = scan_worker
        self._scorer = scorer

        # Core state
        self._event_bus = bus or EventBus()
        self._metrics = MetricsCollector()
        self._store = QuoteStore()
        self._ledger = OpportunityLedger()
        self._dispatcher = QuoteDispatcher(
            self._store,
            DispatchThrottle(settings.dispatch_interval_ms),
            self._dispatch,
        )

        # Hand-off between the stream, the scan worker and the renderer
        self._snapshots: asyncio.Queue[Snapshot] = asyncio.Queue(maxsize=1)
        self._batches: asyncio.Queue[list[CycleCandidate]] = asyncio.Queue(maxsize=1)

        # Components (initialized in setup)
        self._feed: QuoteFeed | None = None
        self._stream: TickerStream | None = None
        self._renderer: OpportunityRenderer | None = None
        self._reporter: CLIReporter | None = None
        self._async_logger: AsyncLogger | None = None
        self._tasks: list[asyncio.Task[Any]] = []
        self._connected = False

        self._event_bus.subscribe_sync(EventType.CONNECTED, self._on_connection_change)
        self._event_bus.subscribe_sync(EventType.DISCONNECTED, self._on_connection_change)
        self._event_bus.subscribe_sync(EventType.FEED_ERROR, self._on_feed_error)

    async def setup(self, configure_logging: bool = True) -> None:
        """
        Initialize all components.

        Args:
            configure_logging: Install the queue-based root log handlers.
        """
        if configure_logging and self._async_logger is None:
            self._async_logger = setup_logging(
                level=self._settings.log_level,
                log_file=self._settings.log_file,
            )

        logger.info("Initializing scanner engine...")

        if self._depth_client is None:
            self._depth_client = BinanceClient(
                base_url=self._settings.rest_url,
                timeout=self._settings.request_timeout,
            )

        if self._scorer is None:
            self._scorer = await ConfidenceScorer.load(
                self._settings.model_url,
                timeout=self._settings.request_timeout,
            )

        if self._scan_worker is None:
            self._scan_worker = ScanWorker(
                reference_asset=self._settings.reference_asset,
                fee_percent=self._settings.fee_percent,
            )
        self._scan_worker.start()

        self._feed = QuoteFeed(
            store=self._store,
            dispatcher=self._dispatcher,
            bus=self._event_bus,
            metrics=self._metrics,
        )

        self._stream = TickerStream(
            url=self._settings.stream_url,
            message_handler=self._feed.handle_message,
            bus=self._event_bus,
            reconnect_delay=self._settings.reconnect_delay,
            decode_error_handler=self._feed.report_decode_error,
        )

        self._renderer = OpportunityRenderer(
            validator=DepthValidator(
                self._depth_client,
                self._store,
                depth_limit=self._settings.depth_limit,
            ),
            scorer=self._scorer,
            ledger=self._ledger,
            bus=self._event_bus,
            trade_url_template=self._settings.trade_url_template,
            reference_asset=self._settings.reference_asset,
            metrics=self._metrics,
        )

        self._reporter = CLIReporter(
            metrics=self._metrics,
            state_provider=self.pipeline_state,
            reference_asset=self._settings.reference_asset,
        )

        logger.info(
            f"Engine initialization complete "
            f"(reference={self._settings.reference_asset}, "
            f"fee={self._settings.fee_percent}%, "
            f"throttle={self._settings.dispatch_interval_ms}ms, "
            f"scoring={'on' if self._scorer.is_available else 'off'})"
        )

    def _dispatch(self, snapshot: Snapshot) -> None:
        """Hand a snapshot to the scan loop; a waiting one is replaced."""
        try:
            self._snapshots.put_nowait(snapshot)
        except asyncio.QueueFull:
            self._snapshots.get_nowait()
            self._snapshots.put_nowait(snapshot)
            self._metrics.increment_counter("snapshots_superseded")

    def _on_connection_change(self, event: Event[Any]) -> None:
        self._connected = event.type is EventType.CONNECTED

    def _on_feed_error(self, event: Event[Any]) -> None:
        if event.source == "stream":
            self._metrics.increment_counter("stream_errors")

    async def _scan_loop(self) -> None:
        """
        Consume snapshots one at a time and queue the resulting batches.

        Waits while a scanned batch is still unrendered, so newer snapshots
        supersede each other instead of piling up as stale batches.
        """
        while self._running:
            snapshot = await self._snapshots.get()

            try:
                with LatencyTimer() as timer:
                    batch = await self._scan_worker.scan(snapshot)  # type: ignore[union-attr]
            except Exception as e:
                message = f"Scan error: {e or type(e).__name__}"
                logger.error(message)
                await self._event_bus.emit(EventType.FEED_ERROR, message, source="scanner")
                continue

            self._metrics.record_latency("scan", timer.latency_us)
            if batch:
                logger.debug(f"Scan of {len(snapshot)} quotes found {len(batch)} candidates")
            await self._batches.put(batch)

    async def _render_loop(self) -> None:
        """Render batches strictly in the order they were produced."""
        while self._running:
            batch = await self._batches.get()
            await self._renderer.process_batch(batch)  # type: ignore[union-attr]

    def start(self, with_stream: bool = True, with_reporter: bool | None = None) -> None:
        """
        Start the pipeline tasks.

        Args:
            with_stream: Connect to the ticker stream.
            with_reporter: Show the terminal panel; defaults to settings.
        """
        if self._renderer is None:
            raise RuntimeError("Engine not set up; call setup() first")
        if self._running:
            return

        self._running = True
        self._shutdown_event.clear()

        self._tasks.append(asyncio.create_task(self._scan_loop(), name="scan-loop"))
        self._tasks.append(asyncio.create_task(self._render_loop(), name="render-loop"))

        if with_stream and self._stream:
            self._tasks.append(self._stream.start())

        if with_reporter is None:
            with_reporter = self._settings.reporter_enabled
        if with_reporter and self._reporter:
            self._reporter.start(interval=self._settings.reporter_interval)

        logger.info("Scanner pipeline started")

    async def run(self) -> None:
        """Run until a shutdown signal is received."""
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self._handle_shutdown)

        try:
            logger.info("Starting scanner engine...")
            self.start()
            await self._shutdown_event.wait()

        except Exception as e:
            logger.error(f"Engine error: {e}")
            raise

        finally:
            await self.shutdown()

    def _handle_shutdown(self) -> None:
        """Handle shutdown signal."""
        logger.info("Shutdown signal received")
        self._running = False
        self._shutdown_event.set()

    async def shutdown(self) -> None:
        """Gracefully shut down the engine. Safe to call twice."""
        logger.info("Shutting down engine...")

        self._running = False
        self._shutdown_event.set()

        # Stop reporter
        if self._reporter and self._reporter.is_running:
            self._reporter.stop()
            self._reporter.print_summary()

        # Stop stream
        if self._stream:
            await self._stream.stop()

        # Stop pipeline tasks
        for task in self._tasks:
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()

        if self._scan_worker:
            self._scan_worker.shutdown()

        # Close exchange client
        if self._owns_client and isinstance(self._depth_client, BinanceClient):
            await self._depth_client.close()

        logger.info("Engine shutdown complete")

        # Stop async logger
        if self._async_logger:
            self._async_logger.stop()
            self._async_logger = None

    def pipeline_state(self) -> PipelineState:
        """Current figures for the terminal panel and the status endpoint."""
        return PipelineState(
            quote_count=len(self._store),
            route_count=len(self._ledger),
            valid_routes=self._ledger.valid_count,
            connected=self._connected,
        )

    @property
    def is_running(self) -> bool:
        """Check if engine is running."""
        return self._running

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def bus(self) -> EventBus:
        return self._event_bus

    @property
    def metrics(self) -> MetricsCollector:
        """Get metrics collector."""
        return self._metrics

    @property
    def store(self) -> QuoteStore:
        return self._store

    @property
    def ledger(self) -> OpportunityLedger:
        return self._ledger

    @property
    def feed(self) -> QuoteFeed | None:
        return self._feed

    @property
    def renderer(self) -> OpportunityRenderer | None:
        return self._renderer

    @property
    def dispatcher(self) -> QuoteDispatcher:
        return self._dispatcher

    @property
    def pending_batches(self) -> int:
        """Scanned batches waiting for the renderer."""
        return self._batches.qsize()


@asynccontextmanager
async def create_engine(settings: Settings, **components: Any) -> AsyncIterator[ScannerEngine]:
    """
    Create and manage engine lifecycle.

    Usage:
        async with create_engine(settings) as engine:
            await engine.run()
    """
    engine = ScannerEngine(settings, **components)

    try:
        await engine.setup()
        yield engine
    finally:
        await engine.shutdown()
