"""Errors raised by the test adapter."""


class PesterAdapterError(Exception):
    """Base class for adapter errors."""


class DiscoveryParseError(PesterAdapterError):
    """Raised when discovery output cannot be located or parsed."""


class ReportParseError(PesterAdapterError):
    """Raised when a result report cannot be read or parsed."""


class AmbiguousResultFileError(PesterAdapterError):
    """Raised when more than one result file matches the configured pattern."""


class UnresolvedNodeIdError(PesterAdapterError):
    """Raised when a node id is not part of the current tree."""

    def __init__(self, node_id: str) -> None:
        super().__init__(f"Node '{node_id}' is not part of the current test tree")
        self.node_id = node_id


class MissingRunnerError(PesterAdapterError):
    """Raised when the external runner is not available."""
