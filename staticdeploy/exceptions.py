"""
staticdeploy Exception Hierarchy

Every pipeline stage raises one named error. The CLI prints the class name
as the label, so the operator always knows which stage stopped the run.
"""

from typing import List, Optional


class StaticDeployError(Exception):
    """Base exception for all staticdeploy errors."""

    def __init__(self, message: str, context: Optional[str] = None):
        self.message = message
        self.context = context
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format error message with optional context."""
        if self.context:
            return f"{self.message}\nContext: {self.context}"
        return self.message

    @property
    def label(self) -> str:
        """Error name shown to the operator."""
        return type(self).__name__


class ConfigMissing(StaticDeployError):
    """Raised when a required file (vault, password, env) does not exist."""

    def __init__(self, path, hint: Optional[str] = None):
        self.path = path
        super().__init__(f"Required file not found: {path}", context=hint)


class DecryptionError(StaticDeployError):
    """Raised when the vault file cannot be decrypted.

    The message never includes decrypted or partially decrypted content.
    """

    pass


class MissingRequiredValue(StaticDeployError):
    """Raised when mandatory configuration fields are unset after merging."""

    def __init__(self, fields: List[str]):
        self.fields = fields
        message = f"Missing required configuration value(s): {', '.join(fields)}"
        context = "Set them in secrets/vault.yml (vault_*) or inventory variables"
        super().__init__(message, context)


class InvalidConfigValue(StaticDeployError):
    """Raised when a configuration value has the wrong shape."""

    pass


class RuntimeUnreachable(StaticDeployError):
    """Raised when the container runtime on the target does not respond."""

    pass


class NetworkNotFound(StaticDeployError):
    """Raised when the shared proxy network does not exist on the target."""

    def __init__(self, network_name: str, available: List[str]):
        self.network_name = network_name
        self.available = available
        message = f"Docker network '{network_name}' not found"
        context = (
            f"Available networks: {', '.join(available) or 'none'}. "
            "The network is owned by the edge proxy deployment."
        )
        super().__init__(message, context)


class TargetFilesystemError(StaticDeployError):
    """Raised when a directory or file cannot be created on the target."""

    pass


class TemplateRenderError(StaticDeployError):
    """Raised when a content or server template fails to render."""

    pass


class ContainerCreateError(StaticDeployError):
    """Raised when the container cannot be created or started."""

    def __init__(self, message: str, context: Optional[str] = None, port_conflict: bool = False):
        self.port_conflict = port_conflict
        super().__init__(message, context)


class ReadinessTimeout(StaticDeployError):
    """Raised when the container never became ready within the timeout."""

    def __init__(
        self,
        container_name: str,
        timeout: float,
        attempts: int,
        log_tail: str = "",
        last_observation: Optional[str] = None,
    ):
        self.container_name = container_name
        self.timeout = timeout
        self.attempts = attempts
        self.log_tail = log_tail
        self.last_observation = last_observation
        message = (
            f"Container '{container_name}' not ready after {timeout:g}s "
            f"({attempts} attempt(s))"
        )
        context = last_observation
        if log_tail:
            tail = "\n".join(f"  | {line}" for line in log_tail.splitlines())
            context = f"{context or 'no observation'}\nRecent logs:\n{tail}"
        super().__init__(message, context)


class IntegrationCheckFailure(StaticDeployError):
    """Raised (report-only) when integration checks failed."""

    def __init__(self, failed_checks: List[str]):
        self.failed_checks = failed_checks
        message = f"{len(failed_checks)} integration check(s) failed"
        super().__init__(message, context=", ".join(failed_checks))
