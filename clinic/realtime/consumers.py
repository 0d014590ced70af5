import json

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer

from clinic.permissions import PROFESSIONAL_ROLES
from clinic.services.alerts import ALERTS_GROUP


class AlertsConsumer(AsyncWebsocketConsumer):
    """Pushes alert changes to connected dashboards."""
    GROUP = ALERTS_GROUP

    async def connect(self):
        user = self.scope.get("user")
        if user is None or not await self._is_professional(user):
            await self.close(code=4401)
            return
        await self.channel_layer.group_add(self.GROUP, self.channel_name)
        await self.accept()
        await self.send(json.dumps({"type": "welcome", "message": "connected"}))

    async def disconnect(self, close_code):
        await self.channel_layer.group_discard(self.GROUP, self.channel_name)

    @database_sync_to_async
    def _is_professional(self, user) -> bool:
        return user.is_active and bool(user.role_names() & PROFESSIONAL_ROLES)

    async def alert_event(self, event):
        # event: {"type": "alert.event", "event": "created"|"updated", "alert": {...}}
        await self.send(json.dumps({"type": "alert", "event": event["event"], "alert": event["alert"]}))

    async def reports_refreshed(self, event):
        # event: {"type": "reports.refreshed", "ts": "...", "keys": [...]}
        await self.send(json.dumps(event))
