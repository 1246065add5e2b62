"""
Tests for tier selection rules.

Tests cover:
- VIP tier selection from balances, history and branch tiers
- Area tier membership and retention
- User area level thresholds
"""

from placement_rewards.config.constants import MICRO_UNIT
from placement_rewards.models.location import Location
from placement_rewards.services.distribution.area_level import area_level_for
from placement_rewards.services.distribution.area_reward import qualifies_for_tier
from placement_rewards.services.distribution.vip_recheck import VipFacts, select_vip_tier
from placement_rewards.services.reward_config import VipConfig

VIP_CONFIG = VipConfig(
    balances=(10, 20, 30, 40, 50, 60),
    team_balances=(100, 200, 300, 400),
)


class TestSelectVipTier:
    """Test VIP tier selection."""

    def test_highest_satisfied_tier_wins(self):
        """A user meeting tier 4 and tier 2 gets tier 4."""
        facts = VipFacts(
            own_balance=45, team_balance=350, history_recommend=5, branch_counts={3: 2}
        )
        assert select_vip_tier(facts, VIP_CONFIG) == 4

    def test_single_qualifying_branch_falls_back(self):
        """Tier 3 and above need two branches holding the tier below."""
        facts = VipFacts(
            own_balance=45, team_balance=350, history_recommend=5, branch_counts={3: 1}
        )
        assert select_vip_tier(facts, VIP_CONFIG) == 2

    def test_tier_two_needs_history(self):
        """Without withdrawal history only tier 1 is reachable."""
        facts = VipFacts(
            own_balance=45, team_balance=350, history_recommend=4, branch_counts={}
        )
        assert select_vip_tier(facts, VIP_CONFIG) == 1

    def test_tier_one_own_balance_only(self):
        facts = VipFacts(own_balance=10, team_balance=0, history_recommend=0, branch_counts={})
        assert select_vip_tier(facts, VIP_CONFIG) == 1

    def test_no_tier(self):
        facts = VipFacts(own_balance=9, team_balance=0, history_recommend=0, branch_counts={})
        assert select_vip_tier(facts, VIP_CONFIG) == 0

    def test_top_tier(self):
        facts = VipFacts(
            own_balance=60, team_balance=500, history_recommend=9, branch_counts={5: 3}
        )
        assert select_vip_tier(facts, VIP_CONFIG) == 6


class TestQualifiesForTier:
    """Test area tier membership."""

    def make_location(self, last_level: int = 0) -> Location:
        return Location(
            id=1, total=500, total_two=100, total_three=300, last_level=last_level
        )

    def test_pair_reaches_threshold(self):
        """Two smaller branches (100 + 300) reach 400."""
        assert qualifies_for_tier(self.make_location(), 1, 400) is True

    def test_pair_below_threshold(self):
        assert qualifies_for_tier(self.make_location(), 1, 500) is False

    def test_retained_tier_qualifies(self):
        """A tier reached before keeps qualifying."""
        assert qualifies_for_tier(self.make_location(last_level=2), 2, 500) is True

    def test_retained_tier_does_not_reach_higher_tiers(self):
        assert qualifies_for_tier(self.make_location(last_level=2), 3, 500) is False


class TestAreaLevelFor:
    """Test user area level thresholds."""

    def test_highest_level_reached(self):
        volume = 250 * MICRO_UNIT
        assert area_level_for(volume, (100, 200, 300, 400)) == 2

    def test_zero_threshold_never_qualifies(self):
        assert area_level_for(10 * MICRO_UNIT, (0, 0, 0, 0)) == 0

    def test_below_first_threshold(self):
        assert area_level_for(99 * MICRO_UNIT, (100, 200, 300, 400)) == 0
