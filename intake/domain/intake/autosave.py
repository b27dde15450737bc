"""
Change-tracking autosave

Every field change marks the field dirty and restarts one shared quiet-period
timer. When the timer fires, the current full form state is written as a
snapshot together with the names of the fields that changed since the last
successful save. Edits made while a write is in flight go into a fresh dirty
set and are saved by a later, independent write.
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional

from ... import config
from ...snapshot_store import SnapshotStore
from .schemas import FormState, PersistedSnapshot

logger = logging.getLogger(__name__)


class AutosaveEngine:
    """Debounced, diff-aware snapshot persistence for one form instance"""

    def __init__(
        self,
        store: SnapshotStore,
        key: str,
        get_state: Callable[[], FormState],
        delay: Optional[float] = None,
    ):
        self.store = store
        self.key = key
        self.get_state = get_state
        self.delay = config.AUTOSAVE_QUIET_SECONDS if delay is None else delay
        self.dirty: set[str] = set()
        self.last_saved: Optional[datetime] = None
        self.save_count = 0
        self._force = False
        self._timer: Optional[asyncio.TimerHandle] = None
        self._writes: set[asyncio.Task] = set()
        self._write_lock = asyncio.Lock()
        # Bumped by discard(); failed writes of an older generation leave the dirty set alone
        self._generation = 0
        self._issued = 0
        self._carry: set[str] = set()

    @property
    def is_saving(self) -> bool:
        return bool(self._writes)

    @property
    def is_scheduled(self) -> bool:
        return self._timer is not None

    def mark_dirty(self, name: str) -> None:
        """Record a changed field and restart the quiet period"""
        self.dirty.add(name)
        self._arm()

    def rearm(self) -> None:
        """Restart the quiet period and save even if nothing is dirty"""
        self._force = True
        self._arm()

    async def load(self) -> Optional[PersistedSnapshot]:
        snapshot = await asyncio.to_thread(self.store.get, self.key)
        if snapshot is not None:
            self.last_saved = snapshot.timestamp
        return snapshot

    async def flush(self) -> None:
        """Save pending changes now and wait for every write to finish"""
        if self._timer is not None:
            self._timer.cancel()
            self._on_quiet()
        await self.wait_idle()

    async def wait_idle(self) -> None:
        while True:
            pending = [task for task in self._writes if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    def cancel(self) -> None:
        """Stop the quiet-period timer without saving"""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._force = False

    async def discard(self) -> None:
        """Drop pending changes and delete the stored snapshot"""
        self.cancel()
        self._generation += 1
        self.dirty = set()
        self._carry = set()
        await self.wait_idle()
        await asyncio.to_thread(self.store.delete, self.key)
        self.last_saved = None
        logger.info(f"🗑️ Discarded autosaved form {self.key}")

    def _arm(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.delay, self._on_quiet)

    def _on_quiet(self) -> None:
        self._timer = None
        if not self.dirty and not self._force:
            return

        # Take the batch; edits from here on belong to the next save
        changed, self.dirty = self.dirty, set()
        self._force = False
        snapshot = PersistedSnapshot(data=dict(self.get_state()), changed_fields=changed)
        self._issued += 1

        task = asyncio.get_running_loop().create_task(self._write(snapshot, self._generation, self._issued))
        self._writes.add(task)
        task.add_done_callback(self._writes.discard)

    async def _write(self, snapshot: PersistedSnapshot, generation: int, number: int) -> None:
        async with self._write_lock:
            if generation == self._generation and self._carry:
                # Names from an earlier failed write are reported by this one
                snapshot.changed_fields = snapshot.changed_fields | self._carry
                self._carry = set()

            try:
                saved = await asyncio.to_thread(self.store.set, self.key, snapshot)
            except Exception as e:
                logger.error(f"❌ Autosave error for {self.key}: {e}")
                saved = False

            if not saved:
                self._keep_failed(snapshot.changed_fields, generation, number)
                return

        self.last_saved = snapshot.timestamp
        self.save_count += 1
        logger.info(f"💾 Auto-saved {self.key}: {sorted(snapshot.changed_fields)}")

    def _keep_failed(self, changed: set[str], generation: int, number: int) -> None:
        if generation != self._generation:
            logger.warning(f"⚠️ Autosave failed for {self.key} after it was discarded")
            return

        if number < self._issued:
            # A later write already holds the full state; it reports these names too
            self._carry |= changed
        else:
            # No retry until the next edit
            self.dirty |= changed
        logger.warning(f"⚠️ Autosave failed for {self.key}, will retry on next change")
