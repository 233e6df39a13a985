"""Check lifecycle: state machine, outreach dispatch and the controller.

- LifecycleController: the single writer of Check status, zone and risk score
- OutreachDispatcher: renders, sends and records verification messages
- state_machine: allowed status transitions
"""

from bgv_system.lifecycle.lifecycle_controller import LifecycleController, overall_risk_level
from bgv_system.lifecycle.outreach import (
    CHECK_ID_HEADER,
    OutreachDispatcher,
    OutreachDispatchError,
)
from bgv_system.lifecycle.state_machine import (
    InvalidTransitionError,
    can_transition,
    ensure_transition,
    is_terminal,
)

__all__ = [
    "CHECK_ID_HEADER",
    "InvalidTransitionError",
    "LifecycleController",
    "OutreachDispatchError",
    "OutreachDispatcher",
    "can_transition",
    "ensure_transition",
    "is_terminal",
    "overall_risk_level",
]
