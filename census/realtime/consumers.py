import json

from asgiref.sync import async_to_sync
from channels.generic.websocket import AsyncWebsocketConsumer
from channels.layers import get_channel_layer


def record_group(date: str) -> str:
    return f"records.{date}"


class RecordUpdatesConsumer(AsyncWebsocketConsumer):
    """Pushes ``record.updated`` events for one census day."""

    async def connect(self):
        self.date = self.scope['url_route']['kwargs']['date']
        self.group_name = record_group(self.date)
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()
        await self.send(json.dumps({"type": "welcome", "date": self.date}))

    async def disconnect(self, close_code):
        await self.channel_layer.group_discard(self.group_name, self.channel_name)

    async def record_updated(self, event):
        # event: {"type": "record.updated", "date": "YYYY-MM-DD", "lastUpdated": "..."}
        await self.send(json.dumps(event))


def broadcast_record_updated(date: str, last_updated: str) -> None:
    channel_layer = get_channel_layer()
    if channel_layer is not None:
        event = {"type": "record.updated", "date": date, "lastUpdated": last_updated}
        async_to_sync(channel_layer.group_send)(record_group(date), event)
