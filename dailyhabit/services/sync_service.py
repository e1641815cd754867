#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
DailyHabit Tracker - Sync Gateway
Keeps one remote document per identity in step with local state

Consistency model: last writer wins at whole-document granularity. Every
persist overwrites the stored document unconditionally; there is no version
check and no field merge. Inbound changes arrive as full Snapshots and are
meant to replace local state wholesale.

Writes are fire-and-forget tasks. With serialize_writes enabled they are
chained per identity through an asyncio.Lock so they land in issue order;
otherwise concurrent writes may complete in any order.

Version: 1.0.0
"""

import asyncio
import logging
from typing import Callable, Dict, Optional, Set

from dailyhabit.config import SyncConfig
from dailyhabit.core.models import Snapshot, ValidationError
from dailyhabit.services.data_export import export_snapshot_json
from dailyhabit.services.document_store import DocumentStore
from dailyhabit.utils.datetime_utils import utc_timestamp

logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[Snapshot], None]
ErrorCallback = Callable[["SyncError"], None]

# ===== EXCEPTIONS =====

class SyncError(Exception):
    """Base error for the sync layer"""
    pass


class SyncReadFailure(SyncError):
    """Loading or watching the remote document failed"""
    pass


class SyncWriteFailure(SyncError):
    """Writing the remote document failed"""
    pass

# ===== SUBSCRIPTION =====

class SnapshotSubscription:
    """
    Push channel for one identity's remote document.

    Each decoded Snapshot goes to on_snapshot when given, otherwise onto
    the queue for the consumer to pick up with next_snapshot().
    """

    def __init__(self, gateway: "SyncGateway", identity: str,
                 on_snapshot: Optional[SnapshotCallback] = None,
                 on_error: Optional[ErrorCallback] = None):
        self.identity = identity
        self.queue: asyncio.Queue = asyncio.Queue()
        self.received = 0
        self.error: Optional[SyncError] = None
        self._gateway = gateway
        self._on_snapshot = on_snapshot
        self._on_error = on_error
        self._task = asyncio.get_running_loop().create_task(self._pump())

    async def _pump(self):
        path = self._gateway.document_path(self.identity)
        try:
            async for document in self._gateway.store.watch(path):
                try:
                    snapshot = Snapshot.from_document(document)
                except ValidationError as e:
                    logger.warning(f"⚠️ Ignoring undecodable document for {self.identity}: {e}")
                    continue

                self.received += 1
                if self._on_snapshot is not None:
                    self._on_snapshot(snapshot)
                else:
                    self.queue.put_nowait(snapshot)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.error = SyncReadFailure(f"Subscription for {self.identity} failed: {e}")
            logger.error(f"❌ {self.error}")
            if self._on_error is not None:
                self._on_error(self.error)

    async def next_snapshot(self) -> Snapshot:
        return await self.queue.get()

    @property
    def active(self) -> bool:
        return not self._task.done()

    async def close(self) -> None:
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass

# ===== GATEWAY =====

class SyncGateway:
    """Remote per-identity document persistence"""

    def __init__(self, store: DocumentStore, config: Optional[SyncConfig] = None):
        self.store = store
        self.config = config or SyncConfig()
        self._pending: Set[asyncio.Task] = set()
        self._locks: Dict[str, asyncio.Lock] = {}

        # metrics
        self.writes_issued = 0
        self.writes_completed = 0
        self.writes_failed = 0
        self.last_error: Optional[SyncError] = None

    def document_path(self, identity: str) -> str:
        return f"artifacts/{self.config.app_id}/users/{identity}/data/userHabits"

    async def initialize_if_absent(self, identity: str) -> Snapshot:
        """Stored snapshot for identity, creating the seed document on first use"""
        path = self.document_path(identity)
        try:
            document = await self.store.get(path)
            if document is not None:
                logger.info(f"📂 Loaded remote snapshot for {identity}")
                return Snapshot.from_document(document)

            seed = Snapshot.default()
            seed.last_updated = utc_timestamp()
            await self.store.set(path, seed.to_document())
            logger.info(f"🆕 Seed snapshot created for {identity}")
            return seed
        except Exception as e:
            raise SyncReadFailure(f"Could not load snapshot for {identity}: {e}") from e

    def subscribe(self, identity: str, on_snapshot: Optional[SnapshotCallback] = None,
                  on_error: Optional[ErrorCallback] = None) -> SnapshotSubscription:
        """Start delivering remote changes. Must be called inside a running event loop."""
        logger.debug(f"👂 Subscribing to {self.document_path(identity)}")
        return SnapshotSubscription(self, identity, on_snapshot=on_snapshot, on_error=on_error)

    def persist(self, identity: str, snapshot: Snapshot) -> asyncio.Task:
        """
        Schedule a whole-document overwrite and return immediately.

        The snapshot is copied now, so later local mutations do not leak
        into this write. Failures are logged and counted, never raised.
        """
        outgoing = snapshot.copy()
        outgoing.last_updated = utc_timestamp()

        self.writes_issued += 1
        task = asyncio.get_running_loop().create_task(self._write(identity, outgoing))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _write(self, identity: str, snapshot: Snapshot) -> bool:
        path = self.document_path(identity)
        try:
            if self.config.serialize_writes:
                lock = self._locks.setdefault(identity, asyncio.Lock())
                async with lock:
                    await self.store.set(path, snapshot.to_document())
            else:
                await self.store.set(path, snapshot.to_document())
        except Exception as e:
            self.writes_failed += 1
            self.last_error = SyncWriteFailure(f"Saving snapshot for {identity} failed: {e}")
            logger.error(f"❌ {self.last_error}")
            return False

        self.writes_completed += 1
        logger.debug(f"☁️ Snapshot saved for {identity} at {snapshot.last_updated}")
        return True

    @property
    def pending_writes(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for every write issued so far"""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    @staticmethod
    def export_local_copy(snapshot: Snapshot) -> bytes:
        return export_snapshot_json(snapshot)

    def get_metrics(self) -> Dict[str, object]:
        return {
            "backend": self.store.name,
            "writes_issued": self.writes_issued,
            "writes_completed": self.writes_completed,
            "writes_failed": self.writes_failed,
            "pending_writes": self.pending_writes,
            "serialize_writes": self.config.serialize_writes,
            "last_error": str(self.last_error) if self.last_error else None,
        }
