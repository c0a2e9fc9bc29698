"""Access gate package."""

from falusy.access.gate import (
    AccessGate,
    GateState,
    evaluate_gate,
    parse_site_status,
)

__all__ = ["AccessGate", "GateState", "evaluate_gate", "parse_site_status"]
