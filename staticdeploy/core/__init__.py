"""
staticdeploy Core

The deployment stages and the pipeline that runs them.
"""

from .config_resolver import ConfigResolver, default_sources
from .integration import IntegrationTestRunner
from .pipeline import DeploymentPipeline, PipelineOutcome, PipelineState, StageResult
from .preflight import PreflightChecker
from .provisioner import Provisioner
from .readiness import ReadinessValidator
from .secret_gate import SecretGate
from .templates import TemplateRenderer

__all__ = [
    "ConfigResolver",
    "DeploymentPipeline",
    "IntegrationTestRunner",
    "PipelineOutcome",
    "PipelineState",
    "PreflightChecker",
    "Provisioner",
    "ReadinessValidator",
    "SecretGate",
    "StageResult",
    "TemplateRenderer",
    "default_sources",
]
