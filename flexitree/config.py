"""
Configuration classes for flexitree.
"""

from __future__ import annotations

from dataclasses import dataclass

from .indices import IndexFormat


@dataclass
class EditorConfig:
    """Settings for one editing session."""
    format: str = IndexFormat.CONLLU.value  # Index labels shown and used for element ids (CoNLL-U or CG3)
    enhanced: bool = False  # Show and accept enhanced (secondary) dependencies
    ltr: bool = True  # Reading direction of the corpus; flips the edge label arrows
    persist_locks: bool = True  # Save the locked element in prefs.json
    user_id: str = "local"  # Identity announced with lock events
    debug: bool = False  # Run invariant checks after every edit

    def __post_init__(self):
        self.format = IndexFormat.coerce(self.format).value

    @property
    def index_format(self) -> IndexFormat:
        return IndexFormat.coerce(self.format)

    @classmethod
    def from_storage(cls, **overrides) -> "EditorConfig":
        """Build a config from the saved defaults; keyword arguments win."""
        from .storage import get_default_enhanced, get_default_format, get_reading_direction

        values = {
            "format": get_default_format(),
            "enhanced": get_default_enhanced(),
            "ltr": get_reading_direction() != "rtl",
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)
