"""
On-demand verification of a single business.
"""

from trustcrawler.orchestrator.verification import (
    VerificationHints,
    VerificationOrchestrator,
    VerificationOutcome,
)

__all__ = [
    "VerificationHints",
    "VerificationOrchestrator",
    "VerificationOutcome",
]
