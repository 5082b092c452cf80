"""Tests for notification emission."""

import pytest

from database import RemoteWriteError
from fakes import InMemoryStore
from models import NotificationStatus
from notifications import NotificationEmitter, PRODUCT_APPROVED

@pytest.mark.asyncio
async def test_emit_writes_unread_notification():
    store = InMemoryStore()
    emitter = NotificationEmitter(store)

    notification = await emitter.emit(
        'U1',
        PRODUCT_APPROVED,
        action_url='/(tabs)/profile?tab=myItems',
        params={'productName': 'Chaise'}
    )

    assert notification is not None
    assert notification.id is not None
    assert notification.user_id == 'U1'
    assert notification.type == 'product'
    assert notification.status == NotificationStatus.UNREAD
    assert notification.translation_params == {'productName': 'Chaise'}
    assert notification.created_at is not None
    assert len(store.collections['notifications']) == 1

@pytest.mark.asyncio
async def test_emit_without_params():
    store = InMemoryStore()

    notification = await NotificationEmitter(store).emit('U2', 'accountReviewed', type='account')

    assert notification.translation_params == {}
    assert notification.action_url is None
    assert store.collections['notifications'][0]['type'] == 'account'

@pytest.mark.asyncio
async def test_emit_failure_returns_none():
    store = InMemoryStore()
    store.insert_errors['notifications'] = RemoteWriteError("insert refused")

    notification = await NotificationEmitter(store).emit('U1', PRODUCT_APPROVED)

    assert notification is None
    assert store.collections['notifications'] == []
