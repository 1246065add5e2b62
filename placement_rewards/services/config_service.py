"""
Config service.

Administrator writes to the reward configuration store. A change of the
secondary currency price records a pending price change event that the
price change job later applies.
"""

from placement_rewards.models.config import PriceChange
from placement_rewards.services.base_service import BaseService, transaction
from placement_rewards.services.reward_config import parse_config_int

PRICE_KEY = "b_price"


class ConfigService(BaseService):
    """Reward configuration updates."""

    @transaction
    async def update_values(self, values: dict[str, str]) -> PriceChange | None:
        """
        Write config values.

        Args:
            values: Mapping key -> raw value

        Returns:
            Recorded price change when ``b_price`` moved, else None
        """
        price_change = None
        for key, value in values.items():
            previous = await self.ledger.configs.set_value(key, value)
            self.logger.info(
                f"Config {key} updated",
                extra={"key": key, "previous": previous, "value": value},
            )

            if key != PRICE_KEY or previous is None:
                continue
            origin = parse_config_int(key, previous)
            price = parse_config_int(key, value)
            if origin != price and origin > 0 and price > 0:
                price_change = await self.ledger.price_changes.record(origin, price)
                self.logger.info(
                    f"Recorded price change {origin} -> {price}",
                    extra={"price_change_id": price_change.id},
                )

        return price_change
