"""
Leaderboard - Display Profiles.

Profile storage lives outside this service. The ranking read path
only needs a batch lookup of display names for the subjects on a
page, so it depends on the ``ProfileDirectory`` interface below.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Iterable, Optional


@dataclass(frozen=True)
class DisplayProfile:
    username: Optional[str] = None
    display_name: Optional[str] = None


class ProfileDirectory(ABC):
    """Batch lookup of display profiles by subject id."""

    @abstractmethod
    def lookup(self, subject_ids: Iterable[str]) -> Dict[str, DisplayProfile]:
        """Return profiles for the known subjects; unknown ids are omitted."""
        pass


class InMemoryProfileDirectory(ProfileDirectory):
    """Dictionary-backed directory for development and tests."""

    def __init__(self, profiles: Optional[Dict[str, DisplayProfile]] = None):
        self._profiles: Dict[str, DisplayProfile] = dict(profiles or {})

    def register(self, subject_id: str, username: str, display_name: Optional[str] = None) -> None:
        self._profiles[subject_id] = DisplayProfile(username=username, display_name=display_name)

    def lookup(self, subject_ids: Iterable[str]) -> Dict[str, DisplayProfile]:
        return {sid: self._profiles[sid] for sid in subject_ids if sid in self._profiles}


__all__ = ["DisplayProfile", "ProfileDirectory", "InMemoryProfileDirectory"]
