# notifications.py
# Канал уведомлений в реальном времени. Логика публикует событие и не знает про транспорт.

import logging

from flask import current_app

logger = logging.getLogger(__name__)

VOTE_UPDATED = 'vote_updated'


class EventChannel:
    def publish(self, event, payload):
        raise NotImplementedError


class SocketIOChannel(EventChannel):
    """Рассылает событие всем подключённым клиентам через Flask-SocketIO."""

    def __init__(self, socketio):
        self.socketio = socketio

    def publish(self, event, payload):
        try:
            self.socketio.emit(event, payload)
        except Exception as e:
            # Доставка - забота канала, голос уже сохранён
            logger.warning("Failed to emit %s %s: %s", event, payload, e)


def get_channel():
    return current_app.extensions['event_channel']


def publish_vote_updated(show_id, channel=None):
    channel = channel or get_channel()
    channel.publish(VOTE_UPDATED, {'show_id': show_id})
