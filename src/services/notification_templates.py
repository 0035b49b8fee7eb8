"""Notification template selection and rendering.

Templates are declared in YAML::

    templates:
      - event: completed
        state: FAILED
        fields:
          failure_message: ".*"
        text: "Query ${QUERY_ID} failed: ${FAILURE_MESSAGE}"

``user``, ``event`` and ``state`` are optional regexes matched against the
whole value; ``fields`` maps a field name to a regex its value must fully
match (absent values never match). The first matching entry wins.
"""

import re
from pathlib import Path
from string import Template
from typing import Final

from pydantic import BaseModel, Field, field_validator

from src.config.yaml_files import load_yaml_model

MISSING_VALUE: Final[str] = "-"


def check_regex(value: str | None) -> str | None:
    """Validate that ``value`` compiles as a regex."""

    if value is None:
        return None
    try:
        re.compile(value)
    except re.error as e:
        raise ValueError(f"invalid regex {value!r}: {e}") from e
    return value


def _full_match(pattern: str | None, value: str | None) -> bool:
    if pattern is None:
        return True
    if value is None:
        return False
    return re.fullmatch(pattern, value) is not None


class NotificationTemplate(BaseModel):
    """One template entry."""

    text: str = Field(..., min_length=1)
    user: str | None = None
    event: str | None = None
    state: str | None = None
    fields: dict[str, str] = Field(default_factory=dict)

    @field_validator("user", "event", "state")
    @classmethod
    def _validate_pattern(cls, value: str | None) -> str | None:
        return check_regex(value)

    @field_validator("fields")
    @classmethod
    def _validate_field_patterns(cls, value: dict[str, str]) -> dict[str, str]:
        for pattern in value.values():
            check_regex(pattern)
        return value

    def matches(
        self, user: str, event: str, state: str, fields: dict[str, str | None]
    ) -> bool:
        if not (
            _full_match(self.user, user)
            and _full_match(self.event, event)
            and _full_match(self.state, state)
        ):
            return False
        return all(
            _full_match(pattern, fields.get(name))
            for name, pattern in self.fields.items()
        )


class NotificationTemplates(BaseModel):
    """Ordered template collection."""

    templates: list[NotificationTemplate] = Field(default_factory=list)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "NotificationTemplates":
        """Load templates from a YAML file.

        Raises:
            ConfigurationError: If the file is unreadable or invalid
        """
        return load_yaml_model(cls, path)

    def get_text(
        self, user: str, event: str, state: str, fields: dict[str, str | None]
    ) -> str | None:
        """Return the text of the first matching template, if any."""

        for template in self.templates:
            if template.matches(user, event, state, fields):
                return template.text
        return None


def render_text(text: str, values: dict[str, str | None]) -> str:
    """Substitute ``${NAME}`` placeholders.

    Absent values render as ``-``; unknown placeholders are left untouched.

    Example:
        >>> render_text("Query ${QUERY_ID} is ${STATE}", {"QUERY_ID": "q1", "STATE": None})
        'Query q1 is -'
    """
    mapping = {
        key: value if value is not None else MISSING_VALUE
        for key, value in values.items()
    }
    return Template(text).safe_substitute(mapping)
