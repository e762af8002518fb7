"""
Quorum

Sends one prompt to several AI model providers concurrently, scores their
answers and reconciles them into a single consensus result or a generated,
packaged application.
"""

__version__ = "0.1.0"

# Configuration
from quorum.config import Settings

# Consensus
from quorum.consensus import ConsensusStrategy, build_consensus

# Dispatch
from quorum.dispatch import Dispatcher

# Errors
from quorum.errors import (
    EmptyInputError,
    InvalidRequestError,
    NoValidOutputError,
    PolicyBlockedError,
    QuorumError,
)

# Generation
from quorum.generator import AppGenerator, GenerationOptions

# Core models
from quorum.models import (
    ArtifactFile,
    CodeBlock,
    ConsensusResult,
    GeneratedApp,
    GenerationRequest,
    RawResult,
    ScoredResult,
)
from quorum.orchestrator import OrchestrationResult, Orchestrator

# Policy
from quorum.policy import EnforcementResult, PolicyProfile, enforce, handle_manual_flag

__all__ = [
    # Version
    "__version__",
    # Models
    "GenerationRequest",
    "RawResult",
    "ScoredResult",
    "ConsensusResult",
    "CodeBlock",
    "ArtifactFile",
    "GeneratedApp",
    # Config
    "Settings",
    # Errors
    "QuorumError",
    "InvalidRequestError",
    "EmptyInputError",
    "NoValidOutputError",
    "PolicyBlockedError",
    # Pipeline
    "Dispatcher",
    "ConsensusStrategy",
    "build_consensus",
    "Orchestrator",
    "OrchestrationResult",
    "AppGenerator",
    "GenerationOptions",
    # Policy
    "PolicyProfile",
    "EnforcementResult",
    "enforce",
    "handle_manual_flag",
]
