import json

from channels.generic.websocket import AsyncWebsocketConsumer

from clinic.services.notifications import group_for


class NotificationConsumer(AsyncWebsocketConsumer):
    """Pushes the signed-in user's notifications as they are stored."""

    async def connect(self):
        user = self.scope.get("user")
        if user is None or not user.is_authenticated:
            await self.close(code=4001)
            return
        self.group_name = group_for(user.id)
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()
        await self.send(json.dumps({"type": "welcome", "user_id": user.id}))

    async def disconnect(self, close_code):
        if hasattr(self, "group_name"):
            await self.channel_layer.group_discard(self.group_name, self.channel_name)

    async def receive(self, text_data=None, bytes_data=None):
        # Clients only listen; answer pings so they can detect dead sockets
        try:
            data = json.loads(text_data or "{}")
        except ValueError:
            return
        if isinstance(data, dict) and data.get("type") == "ping":
            await self.send(json.dumps({"type": "pong"}))

    async def notification_message(self, event):
        # event: {"type": "notification.message", "notification": {...}}
        await self.send(json.dumps({"type": "notification", "notification": event["notification"]}))


class UpdatesConsumer(AsyncWebsocketConsumer):
    """Tells dashboards which cache keys were refreshed so they can reload."""
    GROUP = "updates"

    async def connect(self):
        user = self.scope.get("user")
        if user is None or not user.is_authenticated:
            await self.close(code=4001)
            return
        await self.channel_layer.group_add(self.GROUP, self.channel_name)
        await self.accept()

    async def disconnect(self, close_code):
        await self.channel_layer.group_discard(self.GROUP, self.channel_name)

    async def broadcast_refresh(self, event):
        # event: {"type": "broadcast.refresh", "version": int, "ts": "...", "keys": [...]}
        await self.send(json.dumps(event))
