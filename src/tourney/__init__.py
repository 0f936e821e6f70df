"""
Tournament bracket generation, match tracking and leaderboards.
"""
