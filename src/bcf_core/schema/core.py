"""Base model shared by all BCF entities."""
from __future__ import annotations

import json
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict


class BcfModel(BaseModel):
    """Pydantic BaseModel with some good defaults for BCF entities.

    Equality compares the declared fields only, so that bound accessors and
    back-references (stored as private attributes) never take part in it.
    """

    model_config = ConfigDict(
        # typos in field names should not pass silently
        extra="forbid",
        # users should jump through hoops to add invalid stuff
        validate_assignment=True,
        # defaults should also be validated
        validate_default=True,
        # for XML compat
        allow_inf_nan=False,
    )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BaseModel):
            return NotImplemented
        return type(self) is type(other) and self.__dict__ == other.__dict__

    def json_dict(self, **kwargs) -> Dict[str, Any]:
        """Return a JSON-compatible dict without unset optional values."""
        kwargs.setdefault("exclude_none", True)
        return json.loads(self.model_dump_json(**kwargs))
