"""Periodic work: reminder ladder and the generic interval task.

- ReminderScheduler: sweep pending requests, remind or escalate
- PeriodicTask: start/stop/run_once wrapper with an injectable clock
"""

from bgv_system.scheduling.periodic import PeriodicTask, utc_now
from bgv_system.scheduling.reminder_scheduler import (
    ManualReminderResult,
    ReminderAction,
    ReminderDecision,
    ReminderScheduler,
    SweepReport,
    decide_next_step,
)

__all__ = [
    "ManualReminderResult",
    "PeriodicTask",
    "ReminderAction",
    "ReminderDecision",
    "ReminderScheduler",
    "SweepReport",
    "decide_next_step",
    "utc_now",
]
