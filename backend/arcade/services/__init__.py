"""Arcade domain services: per-game stats, profiles, ledger and leaderboards.

Pure(ish) domain logic imported by HTTP routes and socket handlers. Services
mutate players and stage ledger rows on the session; the routes commit.
"""
