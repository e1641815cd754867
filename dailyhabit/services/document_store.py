#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
DailyHabit Tracker - Document Stores
Whole-document storage keyed by a slash-separated path, with push delivery
of every change to watchers

Backends:
- InMemoryDocumentStore: process-local, no persistence
- JsonFileDocumentStore: one JSON file per path, atomic replace on write
- RedisDocumentStore: SET + PUBLISH on write, SUBSCRIBE for watchers

Version: 1.0.0
"""

import asyncio
import copy
import json
import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional

import redis.asyncio as redis

from dailyhabit.config import SyncBackend, SyncConfig

logger = logging.getLogger(__name__)

Document = Dict[str, Any]

# ===== EXCEPTIONS =====

class DocumentStoreError(Exception):
    """Base error for document store backends"""
    pass

# ===== BASE =====

class DocumentStore(ABC):
    """Whole-document get/set with change watching"""

    name = "abstract"

    @abstractmethod
    async def get(self, path: str) -> Optional[Document]:
        """Current document at path, or None"""

    @abstractmethod
    async def set(self, path: str, document: Document) -> None:
        """Replace the document at path entirely"""

    @abstractmethod
    def watch(self, path: str) -> AsyncIterator[Document]:
        """Yield the current document (if any), then every later write"""

    async def close(self) -> None:
        pass


class _LocalWatchMixin:
    """Fan-out of writes to in-process watcher queues"""

    def _init_watchers(self):
        self._watchers: Dict[str, List[asyncio.Queue]] = {}

    def _publish(self, path: str, document: Document) -> None:
        for queue in self._watchers.get(path, []):
            queue.put_nowait(copy.deepcopy(document))

    async def watch(self, path: str) -> AsyncIterator[Document]:
        queue: asyncio.Queue = asyncio.Queue()
        self._watchers.setdefault(path, []).append(queue)
        try:
            current = await self.get(path)
            if current is not None:
                yield current
            while True:
                yield await queue.get()
        finally:
            self._watchers[path].remove(queue)
            if not self._watchers[path]:
                del self._watchers[path]

    def watcher_count(self, path: str) -> int:
        return len(self._watchers.get(path, []))

# ===== BACKENDS =====

class InMemoryDocumentStore(_LocalWatchMixin, DocumentStore):
    """Documents held in a dict for the life of the process"""

    name = "memory"

    def __init__(self):
        self._documents: Dict[str, Document] = {}
        self._init_watchers()

    async def get(self, path: str) -> Optional[Document]:
        document = self._documents.get(path)
        return copy.deepcopy(document) if document is not None else None

    async def set(self, path: str, document: Document) -> None:
        self._documents[path] = copy.deepcopy(document)
        logger.debug(f"💾 Document written: {path}")
        self._publish(path, document)


class JsonFileDocumentStore(_LocalWatchMixin, DocumentStore):
    """One JSON file per document path under data_dir"""

    name = "file"

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self._write_locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()
        self._init_watchers()

    def _file(self, path: str) -> Path:
        return self.data_dir / (path.strip("/").replace("/", "__") + ".json")

    def _read(self, path: str) -> Optional[Document]:
        file = self._file(path)
        if not file.exists():
            return None
        try:
            with open(file, "r", encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise DocumentStoreError(f"Corrupted document {file}: {e}")

    def _lock_for(self, file: Path) -> threading.Lock:
        with self._locks_guard:
            return self._write_locks.setdefault(str(file), threading.Lock())

    def _write(self, path: str, document: Document) -> None:
        file = self._file(path)
        # executor threads share the temp file, one writer per path at a time
        with self._lock_for(file):
            temp_file = file.with_suffix('.tmp')
            with open(temp_file, "w", encoding="utf-8") as f:
                json.dump(document, f, ensure_ascii=False, indent=2)
            temp_file.replace(file)

    async def get(self, path: str) -> Optional[Document]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._read, path)

    async def set(self, path: str, document: Document) -> None:
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self._write, path, document)
        except OSError as e:
            raise DocumentStoreError(f"Failed to write {path}: {e}")
        logger.debug(f"💾 Document saved to {self._file(path)}")
        self._publish(path, document)


class RedisDocumentStore(DocumentStore):
    """Documents as JSON strings in Redis, changes announced over pub/sub"""

    name = "redis"

    def __init__(self, client: "redis.Redis", key_prefix: str = "dailyhabit"):
        self.client = client
        self.key_prefix = key_prefix

    @classmethod
    def from_url(cls, url: str, key_prefix: str = "dailyhabit") -> "RedisDocumentStore":
        client = redis.from_url(url, encoding="utf-8", decode_responses=True)
        return cls(client, key_prefix=key_prefix)

    def _key(self, path: str) -> str:
        return f"{self.key_prefix}:doc:{path}"

    def _channel(self, path: str) -> str:
        return f"{self.key_prefix}:changes:{path}"

    async def get(self, path: str) -> Optional[Document]:
        try:
            raw = await self.client.get(self._key(path))
        except redis.RedisError as e:
            raise DocumentStoreError(f"Redis read failed for {path}: {e}")
        return json.loads(raw) if raw is not None else None

    async def set(self, path: str, document: Document) -> None:
        payload = json.dumps(document, ensure_ascii=False)
        try:
            await self.client.set(self._key(path), payload)
            await self.client.publish(self._channel(path), payload)
        except redis.RedisError as e:
            raise DocumentStoreError(f"Redis write failed for {path}: {e}")
        logger.debug(f"💾 Document written to redis: {path}")

    async def watch(self, path: str) -> AsyncIterator[Document]:
        pubsub = self.client.pubsub()
        try:
            await pubsub.subscribe(self._channel(path))
            current = await self.get(path)
            if current is not None:
                yield current
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                yield json.loads(message["data"])
        except redis.RedisError as e:
            raise DocumentStoreError(f"Redis subscription failed for {path}: {e}")
        finally:
            await pubsub.aclose()

    async def close(self) -> None:
        await self.client.aclose()


def create_document_store(config: SyncConfig) -> DocumentStore:
    """Build the backend named in the sync configuration"""
    if config.backend is SyncBackend.REDIS:
        logger.info("🔌 Using redis document store")
        return RedisDocumentStore.from_url(config.redis_url, key_prefix=config.app_id)
    if config.backend is SyncBackend.FILE:
        logger.info(f"📂 Using JSON file document store in {config.data_dir}")
        return JsonFileDocumentStore(config.data_dir)
    logger.info("🧠 Using in-memory document store")
    return InMemoryDocumentStore()
