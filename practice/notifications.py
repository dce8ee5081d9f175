"""Background delivery of transactional email"""

import logging
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)


async def deliver(sender: Callable[..., Awaitable[Any]], **kwargs) -> None:
    """
    Run one of the email_service senders, logging instead of raising.

    Scheduled with BackgroundTasks after the database change is committed, so a
    failed email never undoes a booking, reschedule or cancellation.
    """
    try:
        await sender(**kwargs)
    except Exception as e:
        logger.error(f"❌ Background email {sender.__name__} to {kwargs.get('to', 'practice')} failed: {e}")
