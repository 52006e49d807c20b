"""
Redis Publisher for Raffle Events
Publishes engine events to a Redis channel for dashboards and indexers
"""

import json
import logging
import os

import redis

logger = logging.getLogger(__name__)


class RaffleRedisPublisher:
    def __init__(self, redis_url=None, channel=None, client=None):
        self.channel = channel or os.getenv('RAFFLE_EVENTS_CHANNEL', 'raffle:events')
        self.client = client
        self.enabled = False

        if client is not None:
            self.enabled = True
            return

        redis_url = redis_url or os.getenv('REDIS_URL')
        if redis_url:
            if '://' not in redis_url:
                redis_url = f'redis://{redis_url}'
            try:
                self.client = redis.from_url(redis_url, decode_responses=True)
                self.client.ping()
                self.enabled = True
                logger.info("✅ Raffle Redis publisher connected")
            except redis.RedisError as e:
                logger.warning(f"⚠️ Redis unavailable for raffle publisher: {e}")
        else:
            logger.debug("REDIS_URL not set, raffle events will not be published")

    def publish(self, action, data=None, channel=None):
        """Publish an event to a Redis channel"""
        if not self.enabled:
            return False

        channel = channel or self.channel
        try:
            message = json.dumps({
                'action': action,
                'data': data or {}
            })
            self.client.publish(channel, message)
            logger.debug(f"📤 Published to {channel}: {action}")
            return True
        except (redis.RedisError, TypeError, ValueError) as e:
            logger.error(f"❌ Failed to publish to {channel}: {e}")
            return False

    def publish_raffle_event(self, raffle_address, event):
        """Publish a raffle engine event"""
        return self.publish(event.name, {
            'raffle_address': raffle_address,
            'seq': event.seq,
            'round_number': event.round_number,
            'emitted_at': event.emitted_at,
            'args': event.args,
        })
