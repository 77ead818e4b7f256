"""Core domain models for TM server resources.

These models represent database servers and TM containers in a simple,
immutable form. They are intentionally free of transport types and UI/CLI
concerns.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

PATH_SEPARATOR = "/"
ROOT_PATH = PATH_SEPARATOR


def normalize_path(organization_path: str | None) -> str:
    """
    Normalize an organizational path.

    - Strips surrounding whitespace
    - Maps an empty path to the root ('/')
    - Appends a trailing separator when missing ('org' -> 'org/')
    """
    path = (organization_path or "").strip()
    if not path:
        return ROOT_PATH
    if not path.endswith(PATH_SEPARATOR):
        path = f"{path}{PATH_SEPARATOR}"
    return path


def full_container_path(organization_path: str | None, container_name: str) -> str:
    """Return the fully qualified container path (`<path>/<name>`)."""
    return f"{normalize_path(organization_path)}{container_name}"


@dataclass(frozen=True)
class DatabaseServerRef:
    """
    A physical database host registered with the TM server.

    Attributes:
        name: Friendly name, unique within the TM server.
        properties: Opaque, engine-defined connection properties.
    """

    name: str
    properties: Mapping[str, str] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class ContainerDescriptor:
    """
    A logical TM container hosted on a database server.

    Attributes:
        name: Friendly name, unique within its parent path.
        database_name: Physical database name (validated by the server).
        parent_path: Normalized organizational path ending with '/'.
        server: Database server hosting the physical database.
    """

    name: str
    database_name: str
    parent_path: str
    server: DatabaseServerRef

    def __post_init__(self) -> None:
        object.__setattr__(self, "parent_path", normalize_path(self.parent_path))

    @property
    def full_path(self) -> str:
        """Fully qualified path of the container."""
        return f"{self.parent_path}{self.name}"
