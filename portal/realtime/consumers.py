import json

from channels.generic.websocket import AsyncWebsocketConsumer

from portal.services.notifications import group_name


class NotificationsConsumer(AsyncWebsocketConsumer):
    """Pushes new notifications to the connected user."""

    async def connect(self):
        user = self.scope.get('user')
        if not user or not user.is_authenticated:
            await self.close(code=4001)
            return
        self.group_name = group_name(user.id)
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()
        await self.send(json.dumps({'type': 'welcome', 'userId': user.id}))

    async def disconnect(self, close_code):
        if hasattr(self, 'group_name'):
            await self.channel_layer.group_discard(self.group_name, self.channel_name)

    # event: {"type": "notification.created", "notification": {...}}
    async def notification_created(self, event):
        await self.send(json.dumps({'type': 'notification', 'notification': event['notification']}))


class UpdatesConsumer(AsyncWebsocketConsumer):
    """Staff dashboards listen here for report cache refreshes."""
    GROUP = 'updates'

    async def connect(self):
        user = self.scope.get('user')
        if not user or not user.is_authenticated:
            await self.close(code=4001)
            return
        if getattr(user, 'role', None) == 'student':
            await self.close(code=4003)
            return
        await self.channel_layer.group_add(self.GROUP, self.channel_name)
        await self.accept()

    async def disconnect(self, close_code):
        await self.channel_layer.group_discard(self.GROUP, self.channel_name)

    # event: {"type": "broadcast.refresh", "generation": int, "ts": "...", "keys": [...]}
    async def broadcast_refresh(self, event):
        await self.send(json.dumps(event))
