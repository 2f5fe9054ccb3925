"""
Scheduled task execution for LinkGuard.

- **retraction_scheduler.py**: Delayed deletion of transient bot replies
  (link warnings, usage notices). Min-heap ordered, cancellable, and shut
  down without waiting on pending jobs.

- **cooldown_scheduler.py**: Periodic eviction of expired cooldown entries so
  the ledger stays bounded under actor churn.
"""
