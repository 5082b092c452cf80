"""Notifications module for telling marketplace users about moderation decisions.

Emission is best effort: a failed insert is logged and reported as None, it never
raises into the moderation flow that triggered it.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from database import RemoteStore
from models import Notification, NotificationStatus

logger = logging.getLogger(__name__)

PRODUCT_APPROVED = 'productApproved'
PRODUCT_REJECTED = 'productRejected'

class NotificationEmitter:
    """Writes notifications to the store's notifications collection."""

    def __init__(self, store: RemoteStore):
        self.store = store

    async def emit(
        self,
        recipient_id: str,
        translation_key: str,
        type: str = 'product',
        action_url: Optional[str] = None,
        params: Optional[Dict[str, Any]] = None
    ) -> Optional[Notification]:
        """Send a notification to a user.

        Args:
            recipient_id: Id of the user receiving the notification
            translation_key: Key the client app translates into a message
            type: Notification category
            action_url: Optional deep link opened from the notification
            params: Template parameters for the translated message

        Returns:
            The stored Notification, or None if it could not be written
        """
        record = {
            'user_id': recipient_id,
            'translation_key': translation_key,
            'type': type,
            'status': NotificationStatus.UNREAD.value,
            'action_url': action_url,
            'translation_params': dict(params or {}),
            'created_at': datetime.now(timezone.utc)
        }
        try:
            row = await self.store.insert('notifications', record)
            notification = Notification.model_validate(row)
        except Exception as e:
            logger.error(f"Error sending notification {translation_key} to {recipient_id}: {e}")
            return None

        logger.info(f"Notification {translation_key} sent to {recipient_id}")
        return notification

__all__ = ['NotificationEmitter', 'PRODUCT_APPROVED', 'PRODUCT_REJECTED']
