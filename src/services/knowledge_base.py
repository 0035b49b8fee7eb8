"""Failure knowledge base: maps query failure messages to suggested treatments."""

import re
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from src.config.yaml_files import load_yaml_model
from src.services.notification_templates import check_regex


class KnowledgeEntry(BaseModel):
    """Regex found in a failure message and the treatment to suggest."""

    pattern: str = Field(..., min_length=1)
    treatment: str = Field(..., min_length=1)

    @field_validator("pattern")
    @classmethod
    def _validate_pattern(cls, value: str) -> str:
        check_regex(value)
        return value


class KnowledgeBase(BaseModel):
    """Ordered list of known failures.

    Example YAML::

        entries:
          - pattern: "Query exceeded .* memory limit"
            treatment: "Add a filter or ask for a larger memory quota"
    """

    entries: list[KnowledgeEntry] = Field(default_factory=list)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "KnowledgeBase":
        """Load the knowledge base from YAML.

        Raises:
            ConfigurationError: If the file is unreadable or invalid
        """
        return load_yaml_model(cls, path)

    def get_treatment(self, failure_message: str) -> str | None:
        """Return the treatment of the first entry found in the message."""

        for entry in self.entries:
            if re.search(entry.pattern, failure_message):
                return entry.treatment
        return None
