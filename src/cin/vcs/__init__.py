"""Version control wrappers."""

from .git import GitClient
from .repository import SourceRepository

__all__ = ["GitClient", "SourceRepository"]
