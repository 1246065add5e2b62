"""
Services.

Business logic of the placement and reward ledgers.
"""
