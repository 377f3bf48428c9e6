"""Pydantic models shared by the screen parser and the decision providers."""

import json
import math
from typing import Annotated, Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

ElementAction = Literal["tap", "type", "longpress", "scroll", "read"]


class UIElement(BaseModel):
    """One interactive or textual node extracted from a hierarchy dump."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Full resource-id, may be empty")
    text: str = Field(..., description="Visible text, else content description")
    type: str = Field(..., description="Trailing segment of the class name")
    bounds: str
    center: Tuple[int, int]
    size: Tuple[int, int]
    clickable: bool = False
    editable: bool = False
    enabled: bool = True
    checked: bool = False
    focused: bool = False
    selected: bool = False
    scrollable: bool = False
    long_clickable: bool = False
    password: bool = False
    hint: str = ""
    action: ElementAction = "read"
    parent: str = "root"
    depth: int = 0


class CompactElement(BaseModel):
    """Token-lean view of a UIElement.

    Optional fields are left out of the payload when they hold their default,
    and a payload without them must be read back as the defaults.
    """

    text: str
    center: Tuple[int, int]
    action: ElementAction
    enabled: bool = True
    checked: bool = False
    focused: bool = False
    hint: str = ""
    editable: bool = False
    scrollable: bool = False

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_defaults=True)


class TextPart(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ImagePart(BaseModel):
    type: Literal["image"] = "image"
    base64: str
    mime_type: Literal["image/png", "image/jpeg"] = "image/png"

    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.base64}"


ContentPart = Annotated[Union[TextPart, ImagePart], Field(discriminator="type")]


class ChatMessage(BaseModel):
    """A conversation turn: plain text or an ordered list of text/image parts."""

    role: Literal["system", "user", "assistant"]
    content: Union[str, List[ContentPart]]

    def text(self) -> str:
        """Text of the message with image parts skipped."""
        if isinstance(self.content, str):
            return self.content
        return "\n".join(p.text for p in self.content if isinstance(p, TextPart))


def _is_coordinate(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
        and value >= 0
    )


def sanitize_coordinates(value: Any) -> Optional[List[Union[int, float]]]:
    """Return ``[x, y]`` for a well-formed pair of finite non-negative numbers, else None."""
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        return None
    if not all(_is_coordinate(v) for v in value):
        return None
    return [value[0], value[1]]


TEXT_FIELDS = (
    "think",
    "plan_progress",
    "text",
    "direction",
    "package",
    "activity",
    "uri",
    "command",
    "filename",
    "query",
    "url",
    "path",
    "source",
    "dest",
    "setting",
)


def _as_text(value: Any) -> Optional[str]:
    """Strings pass, JSON scalars are rendered as JSON text, anything else is None."""
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (bool, int, float)):
        return json.dumps(value)
    return None


class ActionDecision(BaseModel):
    """The next action proposed by the model.

    ``action`` names one verb of the executor's closed vocabulary; the other
    fields carry whatever that verb needs.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    action: str = Field(..., description="Action verb, e.g. tap, type, scroll, wait, done")
    reason: str = Field(default="", description="Why this action was chosen")
    think: Optional[str] = None
    plan: Optional[List[str]] = None
    plan_progress: Optional[str] = Field(default=None, alias="planProgress")
    coordinates: Optional[List[Union[int, float]]] = None
    text: Optional[str] = None
    direction: Optional[str] = None
    package: Optional[str] = None
    activity: Optional[str] = None
    uri: Optional[str] = None
    extras: Optional[Dict[str, Any]] = None
    command: Optional[str] = None
    filename: Optional[str] = None
    query: Optional[str] = None
    url: Optional[str] = None
    path: Optional[str] = None
    source: Optional[str] = None
    dest: Optional[str] = None
    code: Optional[int] = None
    setting: Optional[str] = None

    @field_validator("coordinates", mode="before")
    @classmethod
    def _sanitize_coordinates(cls, value: Any) -> Optional[List[Union[int, float]]]:
        return sanitize_coordinates(value)

    # Side fields are coerced or dropped so a mistyped one never rejects the action
    @field_validator("reason", mode="before")
    @classmethod
    def _coerce_reason(cls, value: Any) -> str:
        return _as_text(value) or ""

    @field_validator(*TEXT_FIELDS, mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Optional[str]:
        return _as_text(value)

    @field_validator("plan", mode="before")
    @classmethod
    def _coerce_plan(cls, value: Any) -> Optional[List[str]]:
        if not isinstance(value, list):
            return None
        steps = [_as_text(step) for step in value]
        return [step for step in steps if step is not None]

    @field_validator("extras", mode="before")
    @classmethod
    def _coerce_extras(cls, value: Any) -> Optional[Dict[str, Any]]:
        return value if isinstance(value, dict) else None

    @field_validator("code", mode="before")
    @classmethod
    def _coerce_code(cls, value: Any) -> Optional[int]:
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        if isinstance(value, str) and value.strip().isdigit():
            return int(value)
        return None

    @classmethod
    def wait(cls, reason: str) -> "ActionDecision":
        return cls(action="wait", reason=reason)

    def to_payload(self) -> Dict[str, Any]:
        """Wire shape of the decision, without fields the model never set."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
