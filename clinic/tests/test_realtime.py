import pytest
from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from channels.testing import WebsocketCommunicator
from django.contrib.auth.models import AnonymousUser

from clinic.realtime.consumers import NotificationConsumer
from clinic.services.notifications import group_for

from .factories import make_user


@pytest.mark.django_db
def test_anonymous_socket_is_closed():
    async def run():
        communicator = WebsocketCommunicator(NotificationConsumer.as_asgi(), '/ws/notifications/')
        communicator.scope['user'] = AnonymousUser()
        connected, code = await communicator.connect()
        await communicator.disconnect()
        return connected, code

    connected, code = async_to_sync(run)()
    assert connected is False
    assert code == 4001


@pytest.mark.django_db
def test_user_receives_own_group_messages():
    user = make_user('receptionist')

    async def run():
        communicator = WebsocketCommunicator(NotificationConsumer.as_asgi(), '/ws/notifications/')
        communicator.scope['user'] = user
        connected, _ = await communicator.connect()
        welcome = await communicator.receive_json_from()
        await get_channel_layer().group_send(
            group_for(user.id),
            {'type': 'notification.message', 'notification': {'id': 1, 'title': 'Queue update'}},
        )
        pushed = await communicator.receive_json_from()
        await communicator.send_json_to({'type': 'ping'})
        pong = await communicator.receive_json_from()
        await communicator.disconnect()
        return connected, welcome, pushed, pong

    connected, welcome, pushed, pong = async_to_sync(run)()
    assert connected is True
    assert welcome == {'type': 'welcome', 'user_id': user.id}
    assert pushed == {'type': 'notification', 'notification': {'id': 1, 'title': 'Queue update'}}
    assert pong == {'type': 'pong'}
