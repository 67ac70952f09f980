"""Kubernetes Engine deployment.

This package provides the GKEDeployer orchestrator and the components it
delegates to: manifest application, track cleanup, diagnostics and the
strategy reconciler.
"""

from .constants import DeploymentConstants, DeploymentPaths
from .deployer import GKEDeployer, ReleaseContext
from .diagnostics import DiagnosticsCollector
from .reconciler import (
    STRATEGIES,
    CleanupStep,
    DeploymentIdentity,
    Strategy,
    StrategyReconciler,
)

__all__ = [
    "GKEDeployer",
    "ReleaseContext",
    "DeploymentConstants",
    "DeploymentPaths",
    "DiagnosticsCollector",
    "STRATEGIES",
    "CleanupStep",
    "DeploymentIdentity",
    "Strategy",
    "StrategyReconciler",
]
