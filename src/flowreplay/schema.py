"""
Schema definitions for flowreplay.

This module defines the Pydantic models used throughout flowreplay:
- Flow/Step: A recorded user flow and its steps, one model per step type
- AssertedEvent: Post-conditions attached to a step
- TaskStatus/TaskRecord: Runtime state of a launched replay

Design Decisions:
    - Field names follow Python style; aliases match the recorder's camelCase JSON
    - Step and event unions are tagged by ``type`` with a callable discriminator
      so that unknown types still parse (into UnknownStep / UnknownAssertedEvent)
      and are reported at replay time instead of rejecting the whole flow
    - Extra fields are kept: recordings carry ``target``, ``frame`` and friends
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    ValidationError,
    field_validator,
)

from flowreplay.errors import FlowParseError

DEFAULT_STEP_TIMEOUT_MS = 5000


def _tag_for(known: set[str], fallback: str):
    """Build a discriminator that maps unknown ``type`` values to ``fallback``."""

    def discriminate(value: Any) -> str:
        if isinstance(value, dict):
            kind = value.get("type")
        else:
            kind = getattr(value, "type", None)
        return kind if kind in known else fallback

    return discriminate


# =============================================================================
# Enums
# =============================================================================


class TaskStatus(str, Enum):
    """Status of a launched replay task."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class SelectorFamily(str, Enum):
    """Selector syntax families, detected from the candidate's prefix."""

    ARIA = "aria"
    PIERCE = "pierce"
    TEXT = "text"
    XPATH = "xpath"
    CSS = "css"


# =============================================================================
# Asserted Events
# =============================================================================


class AssertedEventBase(BaseModel):
    """Fields shared by every asserted event."""

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    type: str


class ElementBoundingBoxEvent(AssertedEventBase):
    """The selector must match an element (no box comparison is made)."""

    type: Literal["elementBoundingBox"] = "elementBoundingBox"
    selector: str


class ElementCountEvent(AssertedEventBase):
    """The selector must match exactly ``count`` elements."""

    type: Literal["elementCount"] = "elementCount"
    selector: str
    count: int


class ElementTextEvent(AssertedEventBase):
    """The first match's text content must equal ``text``."""

    type: Literal["elementText"] = "elementText"
    selector: str
    text: str


class NavigationEvent(AssertedEventBase):
    """The page URL must match ``url``."""

    type: Literal["navigation"] = "navigation"
    url: str | None = None
    title: str | None = None


class UnknownAssertedEvent(AssertedEventBase):
    """An asserted event type this package does not evaluate."""


ASSERTED_EVENT_TYPES = {"elementBoundingBox", "elementCount", "elementText", "navigation"}

AssertedEvent = Annotated[
    Union[
        Annotated[ElementBoundingBoxEvent, Tag("elementBoundingBox")],
        Annotated[ElementCountEvent, Tag("elementCount")],
        Annotated[ElementTextEvent, Tag("elementText")],
        Annotated[NavigationEvent, Tag("navigation")],
        Annotated[UnknownAssertedEvent, Tag("unknown")],
    ],
    Discriminator(_tag_for(ASSERTED_EVENT_TYPES, "unknown")),
]


# =============================================================================
# Steps
# =============================================================================


class StepBase(BaseModel):
    """
    Fields shared by every step.

    Attributes:
        type: The step kind (navigate, click, ...)
        selectors: Ordered selector candidates; nested arrays contribute their first element
        timeout: Per-operation timeout in milliseconds (None/0 means the default)
        asserted_events: Post-conditions evaluated after the action
    """

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    type: str
    selectors: list[str] = Field(default_factory=list)
    timeout: int | None = Field(default=None, ge=0)
    asserted_events: list[AssertedEvent] = Field(
        default_factory=list,
        alias="assertedEvents",
    )

    @field_validator("selectors", mode="before")
    @classmethod
    def first_of_each_candidate(cls, v: Any) -> Any:
        """Reduce ``[["#a", "#b"], "#c"]`` to ``["#a", "#c"]``."""
        if v is None:
            return []
        if not isinstance(v, list):
            return v
        candidates = []
        for item in v:
            if isinstance(item, list):
                if not item:
                    msg = "selector candidate arrays must not be empty"
                    raise ValueError(msg)
                item = item[0]
            candidates.append(item)
        return candidates

    @field_validator("asserted_events", mode="before")
    @classmethod
    def none_is_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    def effective_timeout(self, default: int = DEFAULT_STEP_TIMEOUT_MS) -> int:
        """Timeout in milliseconds, falling back to ``default`` when unset or zero."""
        return self.timeout or default

    def to_json(self) -> str:
        """Serialize the step back to recorder-style JSON (used in error messages)."""
        return self.model_dump_json(by_alias=True, exclude_none=True)


class NavigateStep(StepBase):
    type: Literal["navigate"] = "navigate"
    url: str


class _PointerStep(StepBase):
    offset_x: float = Field(default=0, alias="offsetX")
    offset_y: float = Field(default=0, alias="offsetY")


class ClickStep(_PointerStep):
    type: Literal["click"] = "click"


class DoubleClickStep(_PointerStep):
    type: Literal["doubleClick"] = "doubleClick"


class ChangeStep(StepBase):
    type: Literal["change"] = "change"
    value: str

    @field_validator("value", mode="before")
    @classmethod
    def stringify(cls, v: Any) -> Any:
        # Substituted inputs may turn "value": ${qty} into a number.
        if isinstance(v, bool):
            return "true" if v else "false"
        if isinstance(v, (int, float)):
            return str(v)
        return v


class CloseStep(StepBase):
    type: Literal["close"] = "close"


class CustomStep(StepBase):
    type: Literal["customStep"] = "customStep"
    name: str | None = None
    parameters: dict[str, Any] = Field(default_factory=dict)


class HoverStep(StepBase):
    type: Literal["hover"] = "hover"


class KeyDownStep(StepBase):
    type: Literal["keyDown"] = "keyDown"
    key: str


class KeyUpStep(StepBase):
    type: Literal["keyUp"] = "keyUp"
    key: str


class ScrollStep(StepBase):
    type: Literal["scroll"] = "scroll"
    x: float = 0
    y: float = 0


class SetViewportStep(StepBase):
    """
    Resize the viewport.

    The device emulation fields are accepted so recordings validate, but only
    width and height are applied to the page.
    """

    type: Literal["setViewport"] = "setViewport"
    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)
    device_scale_factor: float | None = Field(default=None, alias="deviceScaleFactor")
    is_mobile: bool | None = Field(default=None, alias="isMobile")
    has_touch: bool | None = Field(default=None, alias="hasTouch")
    is_landscape: bool | None = Field(default=None, alias="isLandscape")


class WaitForElementStep(StepBase):
    type: Literal["waitForElement"] = "waitForElement"
    operator: Literal["==", "!=", ">", "<", ">=", "<="] = "=="
    count: int = Field(default=1, ge=0)
    visible: bool = True
    properties: dict[str, Any] = Field(default_factory=dict)
    attributes: dict[str, str | None] = Field(default_factory=dict)


class WaitForExpressionStep(StepBase):
    type: Literal["waitForExpression"] = "waitForExpression"
    expression: str


class UnknownStep(StepBase):
    """A step type this package does not replay; kept so the flow still parses."""


STEP_MODELS: dict[str, type[StepBase]] = {
    "navigate": NavigateStep,
    "click": ClickStep,
    "doubleClick": DoubleClickStep,
    "change": ChangeStep,
    "close": CloseStep,
    "customStep": CustomStep,
    "hover": HoverStep,
    "keyDown": KeyDownStep,
    "keyUp": KeyUpStep,
    "scroll": ScrollStep,
    "setViewport": SetViewportStep,
    "waitForElement": WaitForElementStep,
    "waitForExpression": WaitForExpressionStep,
}

Step = Annotated[
    Union[
        Annotated[NavigateStep, Tag("navigate")],
        Annotated[ClickStep, Tag("click")],
        Annotated[DoubleClickStep, Tag("doubleClick")],
        Annotated[ChangeStep, Tag("change")],
        Annotated[CloseStep, Tag("close")],
        Annotated[CustomStep, Tag("customStep")],
        Annotated[HoverStep, Tag("hover")],
        Annotated[KeyDownStep, Tag("keyDown")],
        Annotated[KeyUpStep, Tag("keyUp")],
        Annotated[ScrollStep, Tag("scroll")],
        Annotated[SetViewportStep, Tag("setViewport")],
        Annotated[WaitForElementStep, Tag("waitForElement")],
        Annotated[WaitForExpressionStep, Tag("waitForExpression")],
        Annotated[UnknownStep, Tag("unknown")],
    ],
    Discriminator(_tag_for(set(STEP_MODELS), "unknown")),
]


class Flow(BaseModel):
    """
    A recorded user flow.

    Attributes:
        title: Optional title given by the recorder
        steps: Ordered steps, replayed strictly in document order
        input_schema: Optional description of the ``${name}`` inputs the flow expects
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    title: str | None = None
    steps: list[Step] = Field(default_factory=list)
    input_schema: Any | None = None

    @field_validator("steps", mode="before")
    @classmethod
    def none_is_empty(cls, v: Any) -> Any:
        return [] if v is None else v


# =============================================================================
# Runtime Models
# =============================================================================


class TaskRecord(BaseModel):
    """
    State of a launched replay.

    Attributes:
        task_id: Unique identifier returned to the caller at launch
        status: pending until the replay finishes, then completed or failed
        result: Success payload (``{"successReplay": True}``)
        error: Failure message
        created_at: When the task was created
        finished_at: When the task reached a terminal state
    """

    model_config = ConfigDict(extra="forbid")

    task_id: str = Field(..., description="Unique identifier for this task")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="Task status")
    result: Any | None = Field(default=None, description="Success payload")
    error: str | None = Field(default=None, description="Failure message")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="When the task was created",
    )
    finished_at: datetime | None = Field(
        default=None,
        description="When the task reached a terminal state",
    )

    @property
    def is_terminal(self) -> bool:
        return self.status != TaskStatus.PENDING

    def to_status(self) -> dict[str, Any]:
        """Status payload as exposed to status-polling callers."""
        payload: dict[str, Any] = {"taskId": self.task_id, "status": self.status.value}
        if self.status == TaskStatus.COMPLETED:
            payload["result"] = self.result
        elif self.status == TaskStatus.FAILED:
            payload["error"] = self.error
        return payload


# =============================================================================
# Loading Helpers
# =============================================================================


def parse_flow(content: str, flow_ref: str = "<string>") -> Flow:
    """
    Parse flow JSON text.

    Args:
        content: JSON text, after placeholder substitution
        flow_ref: Name used in error messages

    Returns:
        Validated Flow object

    Raises:
        FlowParseError: If the text is not JSON or doesn't match the schema
    """
    try:
        return Flow.model_validate_json(content)
    except ValidationError as e:
        raise FlowParseError(flow_ref=flow_ref, underlying_error=str(e)) from e
