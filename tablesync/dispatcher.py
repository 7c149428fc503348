from __future__ import annotations

import asyncio
import functools
import logging
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Deque, Dict, List, Optional

from adapters.db.base import QueryGateway
from adapters.metrics.base import Metrics
from adapters.metrics.noop import NoOpMetrics
from tablesync.constraints import ConstraintResolver
from tablesync.errors.exceptions import WorkflowError
from tablesync.introspector import SchemaIntrospector
from tablesync.loader import DEFAULT_PAGE_SIZE, TableDataLoader
from tablesync.messages import (
    DropTable,
    ErrorNotification,
    FetchTableData,
    FetchTables,
    GetTableSchema,
    Request,
    RequestOutcome,
    TruncateTable,
    Update,
)
from tablesync.mutations import MutationExecutor
from tablesync.store import TableStore
from tablesync.synchronizer import SchemaSynchronizer

logger = logging.getLogger(__name__)

Handler = Callable[[Any], Awaitable[Any]]
Listener = Callable[[Update], None]


@dataclass
class _Envelope:
    request: Request
    future: "asyncio.Future[RequestOutcome]"
    settled: bool = False


@dataclass
class _Lane:
    name: str
    handler: Handler
    serial: bool
    queue: "asyncio.Queue[_Envelope]" = field(default_factory=asyncio.Queue)
    worker: Optional["asyncio.Task[None]"] = None


class WorkflowDispatcher:
    """
    Routes typed requests to one processing lane per request kind.

    - fetch_tables is serial: a synchronization pass (constraints included)
      finishes before the next one is taken.
    - every other lane starts one task per request, so requests overlap.

    Every update goes through ``emit``: it is applied to the TableStore and
    then queued on the outbox for the collaborator. A failing request turns
    into an ErrorNotification and never stops its lane.
    """

    def __init__(
        self,
        gateway: QueryGateway,
        *,
        store: TableStore | None = None,
        schema: str = "public",
        page_size: int = DEFAULT_PAGE_SIZE,
        metrics: Metrics | None = None,
        id_factory: Callable[[str], str] | None = None,
    ):
        self.gateway = gateway
        self.store = store or TableStore()
        self.metrics: Metrics = metrics or NoOpMetrics()
        self.outbox: Deque[Update] = deque()
        self._listeners: List[Listener] = []

        self.constraints = ConstraintResolver(
            gateway, emit=self.emit, schema=schema, metrics=self.metrics
        )
        self.synchronizer = SchemaSynchronizer(
            gateway,
            emit=self.emit,
            submit=self.submit,
            constraints=self.constraints,
            schema=schema,
            id_factory=id_factory,
        )
        self.loader = TableDataLoader(
            gateway, emit=self.emit, schema=schema, page_size=page_size
        )
        self.introspector = SchemaIntrospector(
            gateway, emit=self.emit, schema=schema, metrics=self.metrics
        )
        self.mutations = MutationExecutor(gateway, emit=self.emit, schema=schema)

        self._lanes: Dict[type, _Lane] = {
            FetchTables: _Lane("fetch_tables", self.synchronizer.run, serial=True),
            FetchTableData: _Lane("fetch_table_data", self.loader.run, serial=False),
            GetTableSchema: _Lane("get_schema", self.introspector.run, serial=False),
            DropTable: _Lane("drop_table", self.mutations.drop, serial=False),
            TruncateTable: _Lane("truncate_table", self.mutations.truncate, serial=False),
        }
        self._inflight: Dict["asyncio.Task[None]", _Envelope] = {}
        self._pending = 0
        self._idle = asyncio.Event()
        self._idle.set()
        self._running = False

    # ---------------------------- lifecycle ----------------------------
    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        if self._running:
            return
        for lane in self._lanes.values():
            lane.worker = asyncio.create_task(
                self._serve(lane), name=f"tablesync-lane-{lane.name}"
            )
        self._running = True
        logger.debug(
            "Dispatcher started",
            extra={"lanes": [lane.name for lane in self._lanes.values()]},
        )

    async def stop(self, *, drain: bool = True) -> None:
        """Stop every lane. With ``drain`` the queued requests finish first."""
        if not self._running:
            return
        if drain:
            await self.join()
        workers = [lane.worker for lane in self._lanes.values() if lane.worker]
        for worker in workers:
            worker.cancel()
        if not drain:
            for task in list(self._inflight):
                task.cancel()
        await asyncio.gather(*workers, *self._inflight, return_exceptions=True)
        for lane in self._lanes.values():
            lane.worker = None
            dropped = self._discard_queued(lane)
            if dropped:
                logger.warning(
                    "Dropped %d queued request(s) on stop",
                    dropped,
                    extra={"lane": lane.name},
                )
        self._running = False
        logger.debug("Dispatcher stopped")

    async def join(self) -> None:
        """Wait until no request is queued or running, follow-ons included."""
        await self._idle.wait()

    async def __aenter__(self) -> "WorkflowDispatcher":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop(drain=exc_type is None)

    # ---------------------------- inbound ----------------------------
    def submit(self, request: Request) -> "asyncio.Future[RequestOutcome]":
        """
        Queue ``request`` on its lane. Must be called from the event loop.

        The returned future resolves with a RequestOutcome once the request
        has been handled; awaiting it is optional.
        """
        lane = self._lanes.get(type(request))
        if lane is None:
            raise TypeError(f"Unsupported request type: {type(request).__name__}")
        future: "asyncio.Future[RequestOutcome]" = (
            asyncio.get_running_loop().create_future()
        )
        self._pending += 1
        self._idle.clear()
        lane.queue.put_nowait(_Envelope(request=request, future=future))
        return future

    # ---------------------------- outbound ----------------------------
    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def emit(self, update: Update) -> None:
        self.store.apply(update)
        self.outbox.append(update)
        for listener in self._listeners:
            try:
                listener(update)
            except Exception:
                # a broken subscriber must not fail the request that emitted
                logger.exception(
                    "Update listener failed", extra={"update": type(update).__name__}
                )
        logger.debug("Update emitted: %s", type(update).__name__)

    def peek(self) -> List[Update]:
        """Updates waiting in the outbox, oldest first, without removing them."""
        return list(self.outbox)

    def drain(self, limit: Optional[int] = None) -> List[Update]:
        """Pop the waiting updates, oldest first; at most ``limit`` when given."""
        count = len(self.outbox) if limit is None else min(limit, len(self.outbox))
        return [self.outbox.popleft() for _ in range(count)]

    # ---------------------------- lanes ----------------------------
    async def _serve(self, lane: _Lane) -> None:
        while True:
            env = await lane.queue.get()
            if lane.serial:
                await self._handle(lane, env)
            else:
                task = asyncio.create_task(self._handle(lane, env))
                self._inflight[task] = env
                task.add_done_callback(functools.partial(self._settle, lane))

    def _settle(self, lane: _Lane, task: "asyncio.Task[None]") -> None:
        env = self._inflight.pop(task)
        # cancelled before _handle ever ran
        if not env.settled:
            env.settled = True
            env.future.cancel()
            lane.queue.task_done()
            self._release()

    async def _handle(self, lane: _Lane, env: _Envelope) -> None:
        t0 = time.perf_counter()
        outcome: Optional[RequestOutcome] = None
        try:
            try:
                result = await lane.handler(env.request)
                outcome = (
                    result if isinstance(result, RequestOutcome) else RequestOutcome(ok=True)
                )
            except asyncio.CancelledError:
                env.future.cancel()
                raise
            except Exception as exc:
                error = WorkflowError.wrap(exc)
                logger.exception(
                    "Request failed in lane %s: %s",
                    lane.name,
                    error,
                    extra={"lane": lane.name, "code": error.code},
                )
                outcome = RequestOutcome(ok=False, error=error)
                try:
                    self.emit(ErrorNotification(error=error))
                except Exception:
                    logger.exception(
                        "Could not emit error notification", extra={"lane": lane.name}
                    )

            dt = (time.perf_counter() - t0) * 1000.0
            self.metrics.observe_lane_duration_ms(lane=lane.name, dt_ms=dt)
            self.metrics.inc_lane_request(lane=lane.name, ok=outcome.ok)
            if outcome.error is not None:
                self.metrics.inc_lane_error(
                    lane=lane.name, error_code=outcome.error.code.value
                )
        finally:
            if not env.future.done():
                if outcome is None:
                    env.future.cancel()
                else:
                    env.future.set_result(outcome)
            env.settled = True
            lane.queue.task_done()
            self._release()

    def _discard_queued(self, lane: _Lane) -> int:
        """Cancel requests still waiting on ``lane``; returns how many."""
        dropped = 0
        while not lane.queue.empty():
            env = lane.queue.get_nowait()
            env.future.cancel()
            lane.queue.task_done()
            dropped += 1
        if dropped:
            self._release(dropped)
        return dropped

    def _release(self, count: int = 1) -> None:
        self._pending -= count
        if self._pending <= 0:
            self._pending = 0
            self._idle.set()
