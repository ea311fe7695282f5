"""
Utility functions module.

Timer semantics:
- Every wait in the bot is a TimerHandle on a TimerQueue, never a sleep
- Callbacks run one at a time in (deadline, scheduling order)
- Tests drive a VirtualClock; production runs a WallClockScheduler
"""
