"""
Media references and node actions.

An action is a tagged union on `type`. Each variant declares exactly the
fields it needs and forbids the others, so a pdf action carrying slideshow
images (or an iframe with an uploaded file) is rejected when parsed.
"""

import uuid
from typing import Annotated, Literal, Optional, Type, TypeVar, Union

import pydantic
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from ..core.errors import ValidationError

T = TypeVar("T", bound=BaseModel)


class MediaRef(BaseModel):
    """One object in the object store: storage key + public URL."""

    key: str = Field(min_length=1)
    url: str = Field(min_length=1)
    duration: Optional[float] = Field(default=None, ge=0)  # seconds, videos only

    @field_validator("key")
    @classmethod
    def _relative_key(cls, v: str) -> str:
        # Keys are object names under the bucket or LOCAL_STORAGE_PATH
        if v.startswith("/") or ".." in v.split("/"):
            raise ValueError("key must be a relative object name without '..' segments")
        return v


class SlideImage(MediaRef):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))


class Position(BaseModel):
    x: float = Field(default=50, ge=0, le=100)
    y: float = Field(default=50, ge=0, le=100)


class Popup(BaseModel):
    """Overlay image shown on top of the action."""

    media: MediaRef
    x: float = Field(default=50, ge=0, le=100)
    y: float = Field(default=50, ge=0, le=100)


class _ActionBase(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = None
    # Container size, percent of the screen
    width: float = Field(default=85, gt=0, le=100)
    height: float = Field(default=95, gt=0, le=100)
    popup: Optional[Popup] = None


class ImageAction(_ActionBase):
    type: Literal["image"] = "image"
    media: MediaRef


class PdfAction(_ActionBase):
    type: Literal["pdf"] = "pdf"
    media: MediaRef


class IframeAction(_ActionBase):
    type: Literal["iframe"] = "iframe"
    external_url: str

    @field_validator("external_url")
    @classmethod
    def _http_only(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("external_url must be an http(s) URL")
        return v


class SlideshowAction(_ActionBase):
    type: Literal["slideshow"] = "slideshow"
    images: list[SlideImage] = Field(default_factory=list)


Action = Annotated[
    Union[ImageAction, PdfAction, IframeAction, SlideshowAction],
    Field(discriminator="type"),
]

_action_adapter = TypeAdapter(Action)


def parse_action(data) -> Optional[Action]:
    """Stored dict (or None) → Action variant."""
    if data is None:
        return None
    try:
        return _action_adapter.validate_python(data)
    except pydantic.ValidationError as e:
        raise ValidationError(f"Invalid action: {_first_error(e)}") from e


def owned_keys(action: Optional[Action]) -> list[str]:
    """Every object-store key the action owns. Iframes own nothing of their own."""
    if action is None:
        return []

    keys = []
    if isinstance(action, SlideshowAction):
        keys.extend(img.key for img in action.images)
    elif isinstance(action, (ImageAction, PdfAction)):
        keys.append(action.media.key)
    if action.popup:
        keys.append(action.popup.media.key)
    return keys


def validate_payload(schema: Type[T], data) -> T:
    """Parse raw input into `schema`, reporting failures as ValidationError."""
    if isinstance(data, schema):
        return data
    try:
        return schema.model_validate(data)
    except pydantic.ValidationError as e:
        raise ValidationError(_first_error(e)) from e


def _first_error(e: pydantic.ValidationError) -> str:
    err = e.errors()[0]
    loc = ".".join(str(p) for p in err.get("loc", ()))
    return f"{loc}: {err['msg']}" if loc else err["msg"]
