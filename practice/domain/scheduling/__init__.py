"""
Scheduling domain - availability windows, blocked slots and the two engines built on them.

- time_slots: pure slot generation and conflict rules
- availability_engine: loads calendar state and applies those rules
- policy: reschedule fees and cancellation refunds
"""
