"""Schema and parsing for AI-generated Studio projects."""

import json
import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

_FENCED_JSON = re.compile(r"```json\s*([\s\S]*?)\s*```")


class GeneratedFile(BaseModel):
    """One file of a generated project."""

    path: str
    language: Optional[str] = None
    content: str = ""


class NextStep(BaseModel):
    """A suggested follow-up with a priority (High, Medium, Low)."""

    text: str
    priority: str = "Medium"


class GeneratedProject(BaseModel):
    """Structured project returned by the project generation prompt."""

    model_config = ConfigDict(populate_by_name=True)

    project_name: str = Field(default="", alias="projectName")
    files: list[GeneratedFile] = Field(default_factory=list)
    explanation: str = ""
    next_steps: list[NextStep] = Field(default_factory=list, alias="nextSteps")


def parse_generated_project(raw: str) -> GeneratedProject:
    """
    Parse a project generation response.

    Accepts bare JSON or JSON wrapped in a fenced ```json block.

    Raises:
        ValueError: If the text is not valid JSON or does not match the schema
    """
    text = raw.strip()
    fenced = _FENCED_JSON.search(text)
    if fenced:
        text = fenced.group(1)

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ValueError("Expected a JSON object")

    # pydantic's ValidationError is a ValueError
    return GeneratedProject.model_validate(data)
