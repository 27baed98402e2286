"""
Errors raised while deploying a static site.

Every failure that stops a deployment is a subclass of `DeployError`, so the
command line entry point only has to catch one type. The subclasses tell an
operator what kind of problem happened:

- `RemoteCallError`: an AWS API call failed outright.
- `UnusableStateError`: a resource settled into a state we can't work with.
- `MissingDataError`: something we expected to find (a zone, a stack output) isn't there.
- `DeployTimeoutError`: we gave up waiting, but the resource may still settle later.
- `LocalFileError`: a file on this machine couldn't be read.
"""


class DeployError(Exception):
    """Base class for all deployment failures."""


class RemoteCallError(DeployError):
    """An AWS API call could not be made or was rejected."""

    def __init__(self, operation: str, detail: str = "") -> None:
        self.operation = operation
        message = f"{operation} failed"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class UnusableStateError(DeployError):
    """A remote resource entered a state that needs an operator to intervene."""

    def __init__(self, resource: str, status: str) -> None:
        self.resource = resource
        self.status = status
        super().__init__(f"{resource} entered an unusable state: {status}")


class MissingDataError(DeployError):
    """Expected data was absent from an AWS response."""


class ZoneNotFoundError(MissingDataError):
    def __init__(self, zone_name: str) -> None:
        self.zone_name = zone_name
        super().__init__(f"No Route 53 hosted zone found named '{zone_name}'")


class StackOutputNotFoundError(MissingDataError):
    def __init__(self, stack_name: str, output_name: str) -> None:
        self.stack_name = stack_name
        self.output_name = output_name
        super().__init__(f"Stack output '{output_name}' not found on stack '{stack_name}'")


class DeployTimeoutError(DeployError):
    """A bounded wait ran out while the resource was still transitioning."""

    def __init__(self, phase: str, seconds: float) -> None:
        self.phase = phase
        self.seconds = seconds
        super().__init__(
            f"Timed out after {int(seconds)}s waiting for {phase}; "
            "the resource may still settle on its own"
        )


class LocalFileError(DeployError):
    """A local file or directory could not be read. No AWS call was made."""

    def __init__(self, path: str, detail: str = "") -> None:
        self.path = path
        message = f"Can't read '{path}'"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
