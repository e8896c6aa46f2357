from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class CodeZippyError(Exception):
    """Base exception for errors in the code_zippy package."""

    def __str__(self) -> str:
        return getattr(self, "message", self.__class__.__name__)


@dataclass(frozen=True)
class SourceFolderNotFoundError(CodeZippyError):
    """Raised when the folder to snapshot does not exist or is not a directory."""

    folder: Path
    message: str = "The source folder does not exist or is not a directory."


@dataclass(frozen=True)
class FileProcessingError(CodeZippyError):
    """Raised when a file of the snapshot cannot be read or written."""

    path: Path
    message: str = "The file could not be processed."


@dataclass(frozen=True)
class ArchiveError(CodeZippyError):
    """Raised when the staging folder cannot be packed into a zip archive."""

    archive: Path
    message: str = "The archive could not be created."


@dataclass(frozen=True)
class StagingOverlapsSourceError(CodeZippyError):
    """Raised when wiping the staging folder would delete the source folder."""

    folder: Path
    source: Path
    message: str = "The output folder is the source folder or one of its parents."
