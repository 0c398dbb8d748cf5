from enum import Enum
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator

from errors import InvalidPayloadError

Length = Union[str, int, float, None]


class MarginType(str, Enum):
    NONE = 'none'
    MINIMUM = 'minimum'
    DEFAULT = 'default'
    CUSTOM = 'custom'


class MarginSpec(BaseModel):
    # each side is "<magnitude><unit>?" or a bare number of pixels
    top: Length = None
    right: Length = None
    bottom: Length = None
    left: Length = None


class PrintJob(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    html: Optional[str] = None
    url: Optional[str] = None
    printer_name: Optional[str] = Field(None, alias='printerName')
    copies: int = 1
    landscape: bool = False
    print_background: bool = Field(True, alias='printBackground')
    preview: bool = False
    margin_type: MarginType = Field(MarginType.DEFAULT, alias='marginType')
    margins: Optional[MarginSpec] = None

    @field_validator('copies', mode='before')
    @classmethod
    def _positive_copies(cls, v: Any) -> int:
        if isinstance(v, bool):
            return 1
        if isinstance(v, float) and v.is_integer():
            v = int(v)
        if isinstance(v, int) and v > 0:
            return v
        return 1

    @field_validator('landscape', 'print_background', 'preview', mode='before')
    @classmethod
    def _null_flag_is_default(cls, v: Any, info: ValidationInfo) -> Any:
        if v is None:
            return cls.model_fields[info.field_name].default
        return v

    @field_validator('margin_type', mode='before')
    @classmethod
    def _known_margin_type(cls, v: Any) -> MarginType:
        if isinstance(v, MarginType):
            return v
        if not isinstance(v, str):
            return MarginType.DEFAULT
        try:
            return MarginType(v.strip().lower())
        except ValueError:
            return MarginType.DEFAULT

    @field_validator('margins', mode='before')
    @classmethod
    def _margins_object(cls, v: Any) -> Any:
        if isinstance(v, (Mapping, MarginSpec)):
            return v
        return None

    @field_validator('printer_name', mode='before')
    @classmethod
    def _blank_printer_is_default(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return v

    @property
    def target(self) -> str:
        """What gets loaded: the URL when present, otherwise the HTML text."""
        return self.url or self.html

    @property
    def source_kind(self) -> str:
        return 'url' if self.url else 'html'

    @classmethod
    def from_payload(cls, payload: Any) -> 'PrintJob':
        """Validate a submission body. Neither html nor url is an InvalidPayloadError."""
        if not isinstance(payload, Mapping):
            payload = {}
        try:
            job = cls.model_validate(payload)
        except ValidationError as e:
            raise InvalidPayloadError(f'Invalid print payload: {e.error_count()} field error(s)', {'errors': e.errors(include_url=False)})
        if not job.html and not job.url:
            raise InvalidPayloadError()
        return job
