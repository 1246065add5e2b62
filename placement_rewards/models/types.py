"""
Standard type definitions for database models.

Provides consistent types for ledger amount fields across all models.
"""

from sqlalchemy import BigInteger, Integer

# Ledger amount in micro-units (1 unit = 100000)
# Suitable for: principals, capacities, rewards, balances
MicroAmountType = BigInteger

# Aggregate in whole units
# Suitable for: placement subtree totals
UnitAmountType = BigInteger

# Integer rate or tier number
# Suitable for: out_rate percentages, VIP tier, area level
SmallIntType = Integer
