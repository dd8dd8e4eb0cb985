"""
Exception hierarchy for flowreplay.

All flowreplay exceptions inherit from FlowReplayError, allowing callers to
catch every replay failure with a single except clause.

Exception Categories:
    - FlowError: The flow file could not be read or parsed
    - SelectorResolutionError: No selector candidate was usable for a step
    - StepExecutionError: The page operation for a step failed
    - AssertionTimeoutError: An asserted event did not hold in time
    - TaskNotFoundError: Status was requested for an unknown task id
    - ConfigError: Settings could not be loaded

Every error carries a numeric code, a human-readable message and a context
dict. The replay engine records only the message on the failed task.
"""

from dataclasses import dataclass, field
from typing import Any


# =============================================================================
# Error Codes
# =============================================================================

# Flow errors: 1xxx
ERROR_FLOW_NOT_FOUND = 1001
ERROR_FLOW_PARSE = 1002

# Selector errors: 2xxx
ERROR_SELECTOR_NOT_RESOLVED = 2001

# Step errors: 3xxx
ERROR_STEP_EXECUTION_FAILED = 3001

# Assertion errors: 4xxx
ERROR_ASSERTION_TIMEOUT = 4001

# Task errors: 5xxx
ERROR_TASK_NOT_FOUND = 5001

# Config errors: 6xxx
ERROR_CONFIG_INVALID = 6001


# =============================================================================
# Base Exception
# =============================================================================


@dataclass
class FlowReplayError(Exception):
    """
    Base exception for all flowreplay errors.

    Attributes:
        message: Human-readable error description
        code: Numeric error code for programmatic handling
        suggestion: Optional hint for how to resolve the error
        context: Optional dict with additional debugging info
    """

    message: str = ""
    code: int = 0
    suggestion: str | None = None
    context: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        """Format error for display."""
        parts = [f"[E{self.code}] {self.message}"]
        if self.suggestion:
            parts.append(f"\nSuggestion: {self.suggestion}")
        return "".join(parts)

    def __repr__(self) -> str:
        """Format error for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code}, "
            f"context={self.context!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "suggestion": self.suggestion,
            "context": self.context,
        }


def error_message(exc: BaseException) -> str:
    """Return the bare message of an exception, without code or suggestion."""
    if isinstance(exc, FlowReplayError):
        return exc.message
    return str(exc) or exc.__class__.__name__


# =============================================================================
# Flow Errors
# =============================================================================


@dataclass
class FlowError(FlowReplayError):
    """
    Base class for flow loading errors.

    Attributes:
        flow_ref: The flow reference that was being loaded
    """

    flow_ref: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        self.context["flow_ref"] = self.flow_ref


@dataclass
class FlowNotFoundError(FlowError):
    """Raised when the flow file does not exist."""

    path: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Flow file not found: {self.path or self.flow_ref}"
        if self.code == 0:
            self.code = ERROR_FLOW_NOT_FOUND
        if not self.suggestion:
            self.suggestion = "Check the flow name or set flow_dir in the settings"
        super().__post_init__()
        self.context["path"] = self.path


@dataclass
class FlowParseError(FlowError):
    """Raised when the (preprocessed) flow text is not a valid flow document."""

    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Invalid flow {self.flow_ref}: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_FLOW_PARSE
        super().__post_init__()
        self.context["underlying_error"] = self.underlying_error


# =============================================================================
# Step Errors
# =============================================================================


@dataclass
class StepError(FlowReplayError):
    """
    Base class for errors raised while replaying a single step.

    Attributes:
        step_index: Position of the step in the flow (0-indexed)
        step_type: The step's declared type
    """

    step_index: int = 0
    step_type: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        self.context.update({
            "step_index": self.step_index,
            "step_type": self.step_type,
        })


@dataclass
class SelectorResolutionError(StepError):
    """Raised when none of a step's selector candidates can be used."""

    step_json: str = ""
    candidates: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = (
                f"no valid selector found for this step<{self.step_index}>: {self.step_json}"
            )
        if self.code == 0:
            self.code = ERROR_SELECTOR_NOT_RESOLVED
        if not self.suggestion:
            self.suggestion = "Re-record the step or add a css/xpath selector candidate"
        super().__post_init__()
        self.context["candidates"] = self.candidates


@dataclass
class StepExecutionError(StepError):
    """Raised when the page operation for a step fails."""

    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = (
                f"step<{self.step_index}> {self.step_type} failed: {self.underlying_error}"
            )
        if self.code == 0:
            self.code = ERROR_STEP_EXECUTION_FAILED
        super().__post_init__()
        self.context["underlying_error"] = self.underlying_error


@dataclass
class AssertionTimeoutError(StepError):
    """Raised when an asserted event does not hold within the step timeout."""

    event_type: str = ""
    timeout_ms: int = 0
    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = (
                f"step<{self.step_index}> assertion {self.event_type} not met "
                f"within {self.timeout_ms}ms: {self.underlying_error}"
            )
        if self.code == 0:
            self.code = ERROR_ASSERTION_TIMEOUT
        if not self.suggestion:
            self.suggestion = "Increase the step timeout or update the asserted value"
        super().__post_init__()
        self.context.update({
            "event_type": self.event_type,
            "timeout_ms": self.timeout_ms,
            "underlying_error": self.underlying_error,
        })


# =============================================================================
# Task Errors
# =============================================================================


@dataclass
class TaskNotFoundError(FlowReplayError):
    """Raised when a status query names a task id the store does not know."""

    task_id: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"task id not found: {self.task_id}"
        if self.code == 0:
            self.code = ERROR_TASK_NOT_FOUND
        self.context["task_id"] = self.task_id


# =============================================================================
# Config Errors
# =============================================================================


@dataclass
class ConfigError(FlowReplayError):
    """Raised when settings cannot be loaded or validated."""

    source: str = ""
    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Invalid configuration in {self.source}: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_CONFIG_INVALID
        self.context.update({
            "source": self.source,
            "underlying_error": self.underlying_error,
        })
