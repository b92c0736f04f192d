"""
Base Pydantic model for all typed contract values.

Key features:
- frozen=True: Immutable once validated (values are never mutated here)
- extra='forbid': Undeclared fields are errors, mirroring STRICT schemas
- camelCase aliases on the wire, snake_case attributes in Python
- populate_by_name=True: Accept both alias and field name
"""

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BaseContractModel(BaseModel):
    """
    Base model for all domain and envelope values.

    Invariant: model fields (by alias) are exactly the fields of the
    registered schema of the same name.
    """
    model_config = ConfigDict(
        frozen=True,
        extra='forbid',
        populate_by_name=True,
        alias_generator=to_camel,
        use_enum_values=True,
    )

    def to_wire(self) -> Dict[str, Any]:
        """JSON-ready dict with wire (camelCase) names; unset optionals omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
