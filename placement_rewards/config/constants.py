"""
Accounting constants.

Central location for the fixed rules of the placement ledger. Tunable
rates and thresholds live in the ``config`` table instead.
"""

# One primary-currency unit expressed in ledger micro-units
MICRO_UNIT = 100_000

# Daily yield is split over this many distribution ticks per period
DISTRIBUTION_TICKS = 6

# Referral commission levels of the daily location pass
REFERRAL_LEVELS = 8

# Area reward tiers
AREA_TIERS = 5

# User area levels paid by the recommend area pass
USER_AREA_LEVELS = 4

# VIP tiers sharing the daily withdraw fee
FEE_SHARE_VIP_TIERS = (1, 2, 3)

# VIP tiers range
VIP_MIN = 0
VIP_MAX = 6

# Withdrawal history required for VIP tiers 2 and above
VIP_HISTORY_RECOMMEND_MIN = 5

# Qualifying descendant branches required for VIP tiers 3 and above
VIP_QUALIFYING_BRANCHES_MIN = 2

# Top-four sponsor pool weighting of yesterday / day before yesterday volume
POOL_YESTERDAY_WEIGHT = 70
POOL_DAY_BEFORE_WEIGHT = 30
POOL_WINNERS = 4

# Materialized referral path separator
PATH_SEPARATOR = "/"
