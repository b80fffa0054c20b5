"""Process lifespan management."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from agent import AgentRuntime
from config.store import ConfigStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(config_store: ConfigStore | None = None) -> AsyncIterator[AgentRuntime]:
    """Start the external tool pool, yield the runtime, tear both down on exit.

    Shutdown completes only after every checkpoint store is closed and the
    pool has disconnected.
    """
    runtime = AgentRuntime(config_store)
    runtime.tool_pool.start()
    logger.info("[Runtime] Started")

    try:
        yield runtime
    finally:
        try:
            await runtime.close_all()
        finally:
            await runtime.tool_pool.disconnect_all()
        logger.info("[Runtime] Shut down")
