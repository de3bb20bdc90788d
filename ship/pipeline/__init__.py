"""Build/upload pipeline: targets, operations and the orchestrator."""

from .model import (
    Artifact,
    ArtifactMissing,
    BuildNotSucceeded,
    OperationCrashed,
    OperationFailure,
    OperationTimedOut,
    PipelineFailed,
    PipelineResult,
    PipelineState,
    TargetReport,
    TargetState,
    ToolchainFailed,
    UploadRejected,
    UploaderNotConfigured,
)
from .operations import BuildOperation, TargetOperation, UploadOperation, locate_artifact
from .orchestrator import Orchestrator
from .targets import Target

__all__ = [
    "Artifact",
    "ArtifactMissing",
    "BuildNotSucceeded",
    "BuildOperation",
    "OperationCrashed",
    "OperationFailure",
    "OperationTimedOut",
    "Orchestrator",
    "PipelineFailed",
    "PipelineResult",
    "PipelineState",
    "Target",
    "TargetOperation",
    "TargetReport",
    "TargetState",
    "ToolchainFailed",
    "UploadRejected",
    "UploaderNotConfigured",
    "locate_artifact",
]
