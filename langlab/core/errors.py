# langlab/core/errors.py

# -----------------------------
# Base Errors
# -----------------------------

class InstallerError(Exception):
    """Base class for all installer errors."""
    pass


# -----------------------------
# Pre-flight Errors
# -----------------------------

class PrerequisiteMissingError(InstallerError):
    """Required external tool is not on PATH."""

    def __init__(self, missing_tools):
        self.missing_tools = list(missing_tools)
        super().__init__(
            f"Missing required tools: {', '.join(self.missing_tools)}"
        )


class ConfigurationInvalidError(InstallerError):
    """Operator configuration is missing, unreadable or incomplete."""
    pass


# -----------------------------
# Secret / Overlay Errors
# -----------------------------

class SecretGenerationError(InstallerError):
    """Secure random source unavailable."""
    pass


class OverlayBuildError(InstallerError):
    pass


class MissingBaseConfigError(OverlayBuildError):
    """Base configuration template missing or unreadable."""
    pass


class MalformedConfigError(OverlayBuildError):
    """Configuration document does not parse into a mapping."""
    pass


class MissingDependencyOverlayError(OverlayBuildError):
    """Platform overlay requested before the core overlay exists."""
    pass


# -----------------------------
# Cluster Errors
# -----------------------------

class ClusterError(InstallerError):
    pass


class ClusterCommandError(ClusterError):
    """A helm/kubectl invocation exited non-zero."""

    def __init__(self, command, returncode: int, stderr: str = ""):
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(
            f"Command '{' '.join(self.command)}' failed [{returncode}]: {stderr.strip()}"
        )


class ResourceNotFoundError(ClusterCommandError):
    pass


class ApplyFailure(ClusterError):
    """Package manager apply or convergence failed.

    The message is the manager's own output, unmodified.
    """

    def __init__(self, release: str, output: str):
        self.release = release
        self.output = output
        super().__init__(output)


# -----------------------------
# State Errors
# -----------------------------

class InvalidStateTransition(InstallerError):
    pass


# -----------------------------
# Non-fatal (recorded as warnings)
# -----------------------------

class TeardownPartial(InstallerError):
    """An uninstall step found nothing to remove."""

    def __init__(self, step: str, detail: str):
        self.step = step
        self.detail = detail
        super().__init__(f"{step}: {detail}")


class ReadinessTimeout(InstallerError):
    """Ingress endpoint not assigned within the polling budget."""

    def __init__(self, namespace: str, attempts: int):
        self.namespace = namespace
        self.attempts = attempts
        super().__init__(
            f"No ingress endpoint in namespace {namespace} after {attempts} attempts"
        )
