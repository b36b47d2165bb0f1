"""Entry kinds and concrete-value snapshots.

A concrete value is the read-only projection of an entry's resolved
state used by ``dotctl dump``. Field names are serialized with their
aliases (``sourcePath``, ``targetPath``, ``linkName``) and must stay
stable for downstream consumers.
"""

from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class EntryType(str, Enum):
    """Kind of target-state entry.

    Attributes:
        FILE: Regular file.
        DIRECTORY: Directory.
        SYMLINK: Symbolic link.
        SCRIPT: Script executed on apply.
    """

    FILE = "file"
    DIRECTORY = "dir"
    SYMLINK = "symlink"
    SCRIPT = "script"


class ConcreteValue(BaseModel):
    """Fields shared by every entry snapshot.

    Attributes:
        source_path: Absolute path of the entry in the source directory.
        target_path: Absolute path of the entry in the destination directory.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    source_path: Annotated[str, Field(alias="sourcePath")]
    target_path: Annotated[str, Field(alias="targetPath")]

    def to_dict(self) -> dict[str, Any]:
        """Serialize with the external field names, "type" first."""
        data = self.model_dump(by_alias=True, mode="json")
        return {"type": data.pop("type"), **data}


class SymlinkConcreteValue(ConcreteValue):
    """Snapshot of a symlink entry."""

    entry_type: Annotated[Literal[EntryType.SYMLINK], Field(alias="type")] = EntryType.SYMLINK
    template: bool
    link_name: Annotated[str, Field(alias="linkName")]


class FileConcreteValue(ConcreteValue):
    """Snapshot of a regular file entry."""

    entry_type: Annotated[Literal[EntryType.FILE], Field(alias="type")] = EntryType.FILE
    empty: bool
    encrypted: bool
    perm: int
    template: bool
    contents: str


class DirectoryConcreteValue(ConcreteValue):
    """Snapshot of a directory entry."""

    entry_type: Annotated[Literal[EntryType.DIRECTORY], Field(alias="type")] = (
        EntryType.DIRECTORY
    )
    exact: bool
    perm: int


class ScriptConcreteValue(ConcreteValue):
    """Snapshot of a script entry."""

    entry_type: Annotated[Literal[EntryType.SCRIPT], Field(alias="type")] = EntryType.SCRIPT
    once: bool
    template: bool
    contents: str
