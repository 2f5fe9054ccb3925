"""
Link moderation core.

- **link_detector.py**: Stateless URL detection.
- **roles.py**: The two privilege checks (moderation exemption, sweep authorization).
- **cooldown_ledger.py**: Last-warning timestamps per (channel, author).
- **policy_engine.py**: Decision function for a single message event.
- **sweep.py**: Retroactive cleanup of recent channel history.
"""
