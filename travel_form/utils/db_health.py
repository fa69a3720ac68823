"""Document store health check used by the health endpoint."""

import asyncio
import logging

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from travel_form.core.exceptions import StoreConnectionError
from travel_form.storage.submission_store import SubmissionStore

logger = logging.getLogger(__name__)


async def check_store_connection(store: SubmissionStore) -> bool:
    """
    Test the document store connection.

    Returns:
        bool: True if a round trip succeeded, False otherwise.
    """
    try:
        engine = await store.connect()
        async with engine.connect() as conn:
            await asyncio.wait_for(conn.execute(text("SELECT 1")), timeout=store.connect_timeout)
        return True
    except (StoreConnectionError, SQLAlchemyError, asyncio.TimeoutError, OSError) as e:
        logger.warning(f"Submission store health check failed: {e}")
        return False
