import pytest

from census.realtime import consumers
from census.services import records as record_store

from .conftest import DAY


class RecordingLayer:
    def __init__(self):
        self.sent = []

    async def group_send(self, group, event):
        self.sent.append((group, event))


def test_record_group_name():
    assert consumers.record_group(DAY) == 'records.2024-03-10'


@pytest.mark.django_db
def test_saving_a_day_notifies_its_group(monkeypatch):
    layer = RecordingLayer()
    monkeypatch.setattr(consumers, 'get_channel_layer', lambda: layer)
    doc = record_store.create_day(DAY)
    assert layer.sent == [('records.2024-03-10', {
        'type': 'record.updated', 'date': DAY, 'lastUpdated': doc['lastUpdated'],
    })]


def test_no_layer_is_a_noop(monkeypatch):
    monkeypatch.setattr(consumers, 'get_channel_layer', lambda: None)
    consumers.broadcast_record_updated(DAY, '')
