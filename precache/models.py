"""Core data models shared across precache components."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass(frozen=True)
class FileDetails:
    """A file (or synthetic templated URL) with its revision hash and size."""

    file: str
    hash: str
    size: int


@dataclass(frozen=True)
class ManifestEntry:
    """A URL to precache, as passed between manifest transforms."""

    url: str
    revision: Optional[str]
    size: int = 0

    def to_dict(self) -> Dict[str, str]:
        data = {"url": self.url}
        if self.revision is not None:
            data["revision"] = self.revision
        return data


@dataclass
class ManifestResult:
    """Final output of the transform pipeline."""

    manifest_entries: List[ManifestEntry]
    warnings: List[str] = field(default_factory=list)
    size: int = 0

    @property
    def count(self) -> int:
        return len(self.manifest_entries)

    def to_json_payload(self) -> List[Dict[str, str]]:
        return [entry.to_dict() for entry in self.manifest_entries]
