"""
Shared utilities: worker pool, counters, rate limiting and logging helpers.
"""
