"""Data models for the tradeoff problem document."""
from typing import Any, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field


class Column(BaseModel):
    """One candidate objective of the problem."""

    model_config = ConfigDict(extra="allow")

    key: str = Field(..., description="Key into option values")
    full_name: Optional[str] = Field(default=None, description="Display name")
    type: str = Field(default="numeric", description="numeric, categorical, datetime or text")
    is_objective: bool = False
    goal: Optional[Literal["min", "max"]] = None
    range: Optional[Any] = Field(default=None, description="{low, high} or a list of categories")
    format: Optional[str] = None
    description: Optional[str] = None


class Option(BaseModel):
    """One vehicle style offered as a choice."""

    key: Union[int, str] = Field(..., description="Catalog style id (unique)")
    name: str
    description: Optional[str] = None
    values: dict[str, Any] = Field(default_factory=dict)


class ProblemDocument(BaseModel):
    """Subject, column schema and options of a decision problem."""

    model_config = ConfigDict(extra="allow")

    subject: str
    columns: list[Column] = Field(default_factory=list)
    options: list[Option] = Field(default_factory=list)

    def to_json_dict(self) -> dict[str, Any]:
        """Serializable form; unset column attributes are left out."""
        return {
            "subject": self.subject,
            "columns": [column.model_dump(mode="json", exclude_none=True) for column in self.columns],
            "options": [option.model_dump(mode="json") for option in self.options],
            **(self.model_extra or {}),
        }
