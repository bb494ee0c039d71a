from typing import List, Optional


class CaptureApError(Exception):
    """Base for every failure that ends an invocation."""

    exit_code = 1


class ValidationError(CaptureApError):
    pass


class DependencyError(CaptureApError):
    def __init__(self, missing: List[str]):
        self.missing = list(missing)
        super().__init__("missing required tools: " + ", ".join(self.missing))


class PrivilegeError(CaptureApError):
    pass


class ExternalCommandError(CaptureApError):
    def __init__(self, step: str, message: str, cmd: Optional[List[str]] = None):
        self.step = step
        self.cmd = cmd
        # filled in by the orchestrator with the last stage that succeeded
        self.stage = None
        super().__init__(message)


class StateError(CaptureApError):
    pass


def missing_value(name: str) -> ValidationError:
    return ValidationError(f"No value supplied for: <{name}>")


def invalid_value(name: str, value: str) -> ValidationError:
    return ValidationError(f"Invalid value supplied for <{name}>: {value}")
