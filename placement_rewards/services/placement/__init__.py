"""
Placement ledger services.

Capacity accounting of placement slots shared by every distribution pass.
"""

from placement_rewards.services.placement.accountant import PlacementAccountant
from placement_rewards.services.placement.capacity import (
    CapacityCredit,
    check_capacity_invariant,
    plan_credit,
    plan_debit,
)
from placement_rewards.services.placement.opener import PlacementOpener
from placement_rewards.services.placement.stop_cascade import (
    cascade_stop,
    propagate_open,
)


__all__ = [
    "CapacityCredit",
    "PlacementAccountant",
    "PlacementOpener",
    "cascade_stop",
    "check_capacity_invariant",
    "plan_credit",
    "plan_debit",
    "propagate_open",
]
