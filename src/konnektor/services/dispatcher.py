""" Scheduling of reconciliations from watch events and periodic resyncs.
"""

import asyncio
import logging
import time

from konnektor.crd.base import CRDMetadata
from konnektor.reconciler import Reconciliation, ResourceKey

logger = logging.getLogger(__name__)

ADDED = "ADDED"
MODIFIED = "MODIFIED"
DELETED = "DELETED"


class _Slot:
    """ Per-identity state: the worker task and the single pending pass.
    """

    __slots__ = ("task", "signal", "trigger", "last_seen")

    def __init__(self):
        self.task = None
        self.signal = asyncio.Event()
        self.trigger = None
        self.last_seen = None


def _essence(meta):
    """ The parts of a resource whose change warrants a new pass.

    Status writes do not bump the generation, so they are left out.
    """
    return (
        meta.generation,
        tuple(sorted(meta.labels.items())),
        tuple(sorted(meta.annotations.items())),
        meta.deletionTimestamp,
    )


class WatchDispatcher:
    """ Runs at most one reconciliation per resource identity at a time.

    Every identity gets a worker task that sleeps on a one-slot signal. An
    event arriving while a pass is in flight only marks the slot, so any
    burst of events collapses into exactly one follow-up pass. Passes for
    different identities run concurrently, bounded by ``worker_limit``.

    Args:
        store: ResourceStore listed by the periodic resync
        reconcilers: map of kind to an object with ``async reconcile(reconciliation)``
        namespace: namespace to resync, or None for all namespaces
        resync_interval: seconds between full resyncs
        worker_limit: maximum number of passes running at once
        retry_delay: seconds before a pass that raised is attempted again
    """

    def __init__(
        self,
        store,
        reconcilers,
        namespace=None,
        resync_interval=120.0,
        worker_limit=5,
        retry_delay=10.0,
    ):
        self.store = store
        self.reconcilers = dict(reconcilers)
        self.namespace = namespace
        self.resync_interval = resync_interval
        self.retry_delay = retry_delay
        self._semaphore = asyncio.Semaphore(worker_limit)
        self._slots = {}
        self._essences = {}
        self._retries = {}
        self._resync_task = None
        self._stopping = False
        self.last_resync = None

    def submit(self, kind, event_type, body):
        """ Handle one watch event for a resource body.
        """
        if kind not in self.reconcilers:
            raise ValueError(f"No reconciler for kind {kind}")

        meta = CRDMetadata.model_validate(body["metadata"])
        key = ResourceKey(kind, meta.namespace, meta.name)

        if event_type == DELETED:
            self._essences.pop(key, None)
            self.enqueue(key, "watch " + event_type, last_seen=body)
            return

        essence = _essence(meta)
        if event_type == MODIFIED and self._essences.get(key) == essence:
            logger.debug(f"Ignoring status-only change of {key}")
            return
        self._essences[key] = essence
        self.enqueue(key, "watch " + event_type)
        slot = self._slots.get(key)
        if slot is not None:
            # The resource exists again, so no deletion is pending for it
            slot.last_seen = None

    def enqueue(self, key, trigger, last_seen=None):
        """ Schedule a pass for ``key``, coalescing with any pass already pending.
        """
        if self._stopping:
            logger.debug(f"Dispatcher stopping, dropping {trigger} of {key}")
            return

        slot = self._slots.get(key)
        if slot is None:
            slot = self._slots[key] = _Slot()

        slot.trigger = trigger
        if last_seen is not None:
            slot.last_seen = last_seen
        slot.signal.set()

        if slot.task is None:
            slot.task = asyncio.create_task(self._run(key, slot), name=f"reconcile {key}")

    async def _run(self, key, slot):
        try:
            while slot.signal.is_set():
                slot.signal.clear()
                reconciliation = Reconciliation(slot.trigger, key, last_seen=slot.last_seen)
                slot.last_seen = None
                async with self._semaphore:
                    await self._reconcile(reconciliation)
        finally:
            if self._slots.get(key) is slot:
                del self._slots[key]

    async def _reconcile(self, reconciliation):
        logger.debug(f"{reconciliation}: starting")
        try:
            await self.reconcilers[reconciliation.kind].reconcile(reconciliation)
        except Exception:
            logger.exception(f"{reconciliation}: failed, retrying in {self.retry_delay}s")
            self._schedule_retry(reconciliation)
        else:
            pending = self._retries.pop(reconciliation.key, None)
            if pending is not None:
                pending.cancel()
            logger.debug(f"{reconciliation}: finished")

    def _schedule_retry(self, reconciliation):
        """ Arm the single retry of a resource, replacing any armed earlier.

        The replacement carries the state of the latest failed pass, so a
        failed deletion is not retried as a plain update.
        """
        if self._stopping:
            return
        key = reconciliation.key
        pending = self._retries.pop(key, None)
        if pending is not None:
            pending.cancel()

        def retry():
            self._retries.pop(key, None)
            self.enqueue(reconciliation.key, "retry", last_seen=reconciliation.last_seen)

        self._retries[key] = asyncio.get_running_loop().call_later(self.retry_delay, retry)

    async def resync(self):
        """ Enqueue every resource of every watched kind.
        """
        count = 0
        for kind in self.reconcilers:
            for body in await self.store.list(kind, namespace=self.namespace):
                meta = body["metadata"]
                self.enqueue(ResourceKey(kind, meta["namespace"], meta["name"]), "timer")
                count += 1
        self.last_resync = time.time()
        logger.debug(f"Resync enqueued {count} resources")
        return count

    async def _resync_loop(self):
        while True:
            await asyncio.sleep(self.resync_interval)
            try:
                await self.resync()
            except Exception:
                logger.exception("Periodic resync failed")

    async def start(self):
        """ Run the first resync and start the periodic one.

        Failing to list resources here is fatal: it means the resource store
        cannot be reached at all.
        """
        self._stopping = False
        count = await self.resync()
        logger.info(
            f"Dispatcher started with {count} resources, "
            f"resync every {self.resync_interval}s"
        )
        self._resync_task = asyncio.create_task(self._resync_loop(), name="resync")

    async def stop(self):
        """ Stop scheduling and wait for in-flight passes to finish.
        """
        self._stopping = True
        for handle in list(self._retries.values()):
            handle.cancel()
        self._retries.clear()

        if self._resync_task is not None:
            self._resync_task.cancel()
            try:
                await self._resync_task
            except asyncio.CancelledError:
                pass
            self._resync_task = None

        await self.drain()
        logger.info("Dispatcher stopped")

    async def drain(self):
        """ Wait until no pass is running or pending.
        """
        while self._slots:
            tasks = [slot.task for slot in self._slots.values() if slot.task is not None]
            await asyncio.gather(*tasks, return_exceptions=True)

    def in_flight(self):
        return sorted(str(key) for key in self._slots)

    def health(self):
        """ Report for the operator's liveness probe.
        """
        return {
            "in_flight": self.in_flight(),
            "pending_retries": len(self._retries),
            "last_resync": self.last_resync,
            "resync_interval": self.resync_interval,
        }
