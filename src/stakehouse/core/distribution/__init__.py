from .apr import compute_apr
from .contract import StakeContract
from .orchestrator import DistributionOrchestrator
from .schemas import AprData, CycleError, CycleOutcome, DistributionResult, Participant, Skipped, ValidatedParticipant

__all__ = [
    "AprData",
    "CycleError",
    "CycleOutcome",
    "DistributionOrchestrator",
    "DistributionResult",
    "Participant",
    "Skipped",
    "StakeContract",
    "ValidatedParticipant",
    "compute_apr",
]
