"""
Dramatiq broker for the distribution jobs.

Actors are spread over three Redis queues so a long daily pass never holds
up trade settlement:

- ``distribution``: daily location, area, VIP fee and recommend area passes
- ``settlement``: trade commissions and price change revaluation
- ``maintenance``: VIP tier and area level recomputes
"""

import dramatiq
from dramatiq.brokers.redis import RedisBroker
from dramatiq.middleware import CurrentMessage, Retries, ShutdownNotifications
from loguru import logger

from placement_rewards.config.logging import setup_logging
from placement_rewards.config.settings import settings

DISTRIBUTION_QUEUE = "distribution"
SETTLEMENT_QUEUE = "settlement"
MAINTENANCE_QUEUE = "maintenance"

setup_logging()

redis_broker = RedisBroker(
    host=settings.redis_host,
    port=settings.redis_port,
    password=settings.redis_password if settings.redis_password else None,
    db=settings.redis_db,
)

# A worker shutting down lets the running pass finish its current slot
redis_broker.add_middleware(ShutdownNotifications())
redis_broker.add_middleware(CurrentMessage())
# Settlement and maintenance actors retry; distribution actors opt out
redis_broker.add_middleware(
    Retries(
        max_retries=3,
        min_backoff=1000,  # 1 second
        max_backoff=60000,  # 1 minute
    )
)

dramatiq.set_broker(redis_broker)

broker = redis_broker

logger.info(
    f"Distribution broker on redis://{settings.redis_host}:{settings.redis_port}/"
    f"{settings.redis_db}, queues: "
    f"{', '.join((DISTRIBUTION_QUEUE, SETTLEMENT_QUEUE, MAINTENANCE_QUEUE))}"
)
