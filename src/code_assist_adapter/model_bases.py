"""Nominal marker base class for pydantic models.

``DomainModel`` is used for both the generic Gemini request/response types
and the Code Assist wire records so that every model shares the same
``repr`` and serialization conventions.
"""

from __future__ import annotations

from pydantic import BaseModel


class DomainModel(BaseModel):
    """Nominal marker for Pydantic-based domain and wire models."""

    def __repr__(self) -> str:
        """Provide a concise, one-line summary of the object."""
        class_name = self.__class__.__name__

        # Common identifiers on wire records are 'id', 'name' or 'project'
        repr_attrs = ("id", "name", "project")
        for attr in repr_attrs:
            if hasattr(self, attr):
                attr_value = getattr(self, attr)
                if attr_value is not None:
                    return f'<{class_name} {attr}="{attr_value}">'

        return f"<{class_name}>"
