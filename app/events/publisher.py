import json
from aio_pika import connect_robust, Message, ExchangeType
from app.core.config import settings

_connection = None
_channel = None


async def get_rabbit_connection():
    global _connection, _channel
    if _connection and not _connection.is_closed:
        return _connection, _channel
    _connection = await connect_robust(settings.RABBITMQ_URL)
    _channel = await _connection.channel()
    return _connection, _channel


async def publish_event(routing_key: str, payload: dict):
    """Publish an RSVP domain event for the notification dispatcher to fan out."""
    _, channel = await get_rabbit_connection()
    exchange = await channel.declare_exchange(settings.RSVP_EVENTS_EXCHANGE, ExchangeType.TOPIC, durable=True)
    body = json.dumps(payload).encode()
    message = Message(body, content_type="application/json")
    await exchange.publish(message, routing_key=routing_key)


async def close_connection():
    global _connection, _channel
    if _connection and not _connection.is_closed:
        await _connection.close()
    _connection = None
    _channel = None
