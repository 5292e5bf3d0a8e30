"""
Statistics over finished games: per-player records, hall of fame and rankings.

Everything here works on plain document dicts as read from the store.
"""
