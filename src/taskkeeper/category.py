"""Category and priority models.

Both are plain named labels that tasks reference by name. The store keeps
one object per name and renames it in place.
"""

from dataclasses import dataclass
from typing import Any, Dict

DEFAULT_PRIORITY_NAME = "Default"


@dataclass
class Category:
    """A named classification for tasks."""

    name: str

    def matches(self, name: str) -> bool:
        """Case-insensitive name comparison."""
        return name is not None and self.name.lower() == name.strip().lower()

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Category":
        name = data.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ValueError(f"{cls.__name__} record without name: {data!r}")
        return cls(name=name.strip())


@dataclass
class Priority(Category):
    """A named priority label; "Default" is protected."""

    @property
    def is_default(self) -> bool:
        return self.matches(DEFAULT_PRIORITY_NAME)
