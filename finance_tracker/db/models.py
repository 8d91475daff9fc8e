"""Input models and validation helpers shared by the stores."""
import re
from datetime import date, datetime, timezone
from typing import Annotated, Any, Dict, Literal, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError

DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
Amount = Annotated[float, Field(gt=0, strict=True, allow_inf_nan=False)]

ModelT = TypeVar("ModelT", bound=BaseModel)


def today_iso() -> str:
    """Current local date as YYYY-MM-DD."""
    return date.today().isoformat()


def now_iso() -> str:
    """Current UTC timestamp in ISO-8601 form."""
    return datetime.now(timezone.utc).isoformat()


def is_iso_date(value: Any) -> bool:
    """True for a real calendar date written as YYYY-MM-DD."""
    if not isinstance(value, str) or not DATE_RE.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def check_date(value: Any, field: str) -> str:
    """Validate a date argument, raising ValidationError when malformed."""
    if not is_iso_date(value):
        raise ValidationError(f"{field} must be a date in YYYY-MM-DD format, got {value!r}", field=field)
    return value


def _iso_date(value: Optional[str]) -> Optional[str]:
    if value is not None and not is_iso_date(value):
        raise ValueError("must be a date in YYYY-MM-DD format")
    return value


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and value.strip() == "":
        return None
    return value


class _Input(BaseModel):
    model_config = ConfigDict(extra="forbid")


class CategoryInput(_Input):
    name: NonEmptyStr
    icon: Optional[str] = None
    color: Optional[str] = Field(default=None, pattern=COLOR_PATTERN)
    is_default: bool = False

    @field_validator("icon", "color", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        return _blank_to_none(value)


class TransactionInput(_Input):
    amount: Amount
    description: NonEmptyStr
    type: Literal["income", "expense"]
    date: str = Field(default_factory=today_iso)
    category_id: Optional[int] = Field(default=None, strict=True)
    is_manually_set: bool = False
    source: Literal["manual", "sms", "upload"] = "manual"
    raw_data: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def default_date(cls, value):
        return today_iso() if _blank_to_none(value) is None else value

    @field_validator("source", mode="before")
    @classmethod
    def default_source(cls, value):
        return "manual" if _blank_to_none(value) is None else value

    @field_validator("date")
    @classmethod
    def valid_date(cls, value):
        return _iso_date(value)


class BudgetInput(_Input):
    category_id: int = Field(strict=True)
    amount: Amount
    period: Literal["monthly", "weekly"]
    start_date: str
    end_date: Optional[str] = None

    @field_validator("end_date", mode="before")
    @classmethod
    def blank_end_date(cls, value):
        return _blank_to_none(value)

    @field_validator("start_date", "end_date")
    @classmethod
    def valid_dates(cls, value):
        return _iso_date(value)

    @model_validator(mode="after")
    def end_after_start(self):
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


def validate_input(model: Type[ModelT], data: Dict[str, Any]) -> ModelT:
    """Validate ``data`` against ``model``, translating pydantic errors."""
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error["loc"]) or None
        message = f"{field}: {error['msg']}" if field else error["msg"]
        raise ValidationError(message, field=field) from None
