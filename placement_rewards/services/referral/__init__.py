"""
Referral services.

Read-side access to the sponsor tree.
"""

from placement_rewards.services.referral.graph import ReferralGraph


__all__ = ["ReferralGraph"]
