"""
Contract error taxonomy.

Two families:
- ContractViolation: a value (or a composition request) breaks a contract.
  Carries an ApiError code and the accumulated violations in ``details``.
- SchemaDefinitionError: the schemas themselves are wrong (cycles, drifted
  projections, registration after freeze). Raised at registration time.
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List


# HTTP status per ApiError code, used by the transport adapter
ERROR_STATUS = {
    "SCHEMA_MISMATCH": 422,
    "UNKNOWN_VARIANT": 422,
    "PAGINATION_INVALID": 400,
    "PAGE_SIZE_EXCEEDED": 500,
    "CREDENTIAL_LEAK": 500,
    "INTERNAL_ERROR": 500,
}


@dataclass(eq=False)
class ContractViolation(Exception):
    """Raised when a contract is violated."""
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    code: ClassVar[str] = "SCHEMA_MISMATCH"

    def __str__(self):
        return self.message

    @property
    def violations(self) -> List[Dict[str, Any]]:
        return self.details.get("violations", [])

    @property
    def http_status(self) -> int:
        return ERROR_STATUS.get(self.code, 500)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class SchemaMismatch(ContractViolation):
    """Value does not conform to the expected structure."""
    code = "SCHEMA_MISMATCH"


class UnknownVariant(ContractViolation):
    """Discriminator resolves to no registered variant."""
    code = "UNKNOWN_VARIANT"


class PaginationInvalid(ContractViolation):
    """Malformed pagination parameters."""
    code = "PAGINATION_INVALID"


class PageSizeExceeded(ContractViolation):
    """Returned page is larger than the declared window."""
    code = "PAGE_SIZE_EXCEEDED"


class CredentialLeak(ContractViolation):
    """Attempt to wrap a credential-bearing schema for output."""
    code = "CREDENTIAL_LEAK"


class SchemaDefinitionError(Exception):
    """A schema, enumeration or projection definition is invalid."""


class SchemaCycleError(SchemaDefinitionError):
    """Registering a schema would introduce a reference cycle."""

    def __init__(self, cycle: List[str]):
        self.cycle = cycle
        super().__init__(f"Schema reference cycle: {' -> '.join(cycle)}")


class RegistryFrozen(SchemaDefinitionError):
    """Registration attempted after the registry was frozen."""


class ProjectionError(SchemaDefinitionError):
    """Minimal schema is not a valid projection of the full schema."""
