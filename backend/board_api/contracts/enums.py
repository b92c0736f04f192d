"""
Enumeration Registry - SINGLE SOURCE OF TRUTH for closed token sets.

Every enum-typed field in a schema names one of the sets registered here
(e.g. FieldSpec(enum="role")). Adding a token is a registry update; no
schema elsewhere has to change.

Registry names:
- role:          guest, member, admin
- post_status:   draft, active, closed
- post_category: room, studio, apartment, house, shared
- post_type:     housing_request, sublet (post discriminator)
- amenity:       wifi, laundry, parking, ...
- utility:       electricity, water, gas, ...
- error_code:    ApiError codes
"""

import logging
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Type

from .errors import RegistryFrozen, SchemaDefinitionError


logger = logging.getLogger('board_api.contracts.enums')


# =============================================================================
# ENUM VALUES (lowercase snake_case, error codes upper case)
# =============================================================================

class Role(str, Enum):
    """User role."""
    GUEST = "guest"
    MEMBER = "member"
    ADMIN = "admin"


class PostStatus(str, Enum):
    """Post lifecycle status."""
    DRAFT = "draft"
    ACTIVE = "active"
    CLOSED = "closed"


class PostCategory(str, Enum):
    """Kind of housing a post is about."""
    ROOM = "room"
    STUDIO = "studio"
    APARTMENT = "apartment"
    HOUSE = "house"
    SHARED = "shared"


class PostType(str, Enum):
    """Discriminator tokens for post variants."""
    HOUSING_REQUEST = "housing_request"
    SUBLET = "sublet"


class Amenity(str, Enum):
    WIFI = "wifi"
    LAUNDRY = "laundry"
    PARKING = "parking"
    GYM = "gym"
    POOL = "pool"
    AIR_CONDITIONING = "air_conditioning"
    FURNISHED = "furnished"
    PET_FRIENDLY = "pet_friendly"
    DISHWASHER = "dishwasher"


class Utility(str, Enum):
    ELECTRICITY = "electricity"
    WATER = "water"
    GAS = "gas"
    INTERNET = "internet"
    HEATING = "heating"
    TRASH = "trash"


class ErrorCode(str, Enum):
    """Closed taxonomy of ApiError codes."""
    SCHEMA_MISMATCH = "SCHEMA_MISMATCH"
    UNKNOWN_VARIANT = "UNKNOWN_VARIANT"
    PAGINATION_INVALID = "PAGINATION_INVALID"
    PAGE_SIZE_EXCEEDED = "PAGE_SIZE_EXCEEDED"
    CREDENTIAL_LEAK = "CREDENTIAL_LEAK"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# REGISTRY
# =============================================================================

def token_of(value: Any) -> Any:
    """Return the raw token for an Enum member, the value itself otherwise."""
    if isinstance(value, Enum):
        return value.value
    return value


class EnumRegistry:
    """Named closed sets of string tokens, frozen after startup."""

    def __init__(self):
        self._sets: Dict[str, FrozenSet[str]] = {}
        self._frozen = False

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def register(self, name: str, tokens: Iterable[str]) -> None:
        """
        Register (or replace) an enumeration.

        Raises:
            RegistryFrozen: If the registry has been frozen
            SchemaDefinitionError: If the set is empty or holds non-strings
        """
        if self._frozen:
            raise RegistryFrozen(f"Cannot register enumeration '{name}': registry is frozen")

        values = frozenset(token_of(t) for t in tokens)
        if not values:
            raise SchemaDefinitionError(f"Enumeration '{name}' must have at least one token")
        bad = [t for t in values if not isinstance(t, str)]
        if bad:
            raise SchemaDefinitionError(
                f"Enumeration '{name}' tokens must be strings, got {sorted(map(repr, bad))}"
            )

        if name in self._sets:
            logger.debug(f"Replacing enumeration '{name}'")
        self._sets[name] = values

    def register_enum(self, name: str, enum_cls: Type[Enum]) -> None:
        """Register every member value of a str Enum under ``name``."""
        self.register(name, [member.value for member in enum_cls])

    def get(self, name: str) -> Optional[FrozenSet[str]]:
        return self._sets.get(name)

    def is_member(self, set_name: str, token: Any) -> bool:
        """Check token membership. Total: unknown set names return False."""
        values = self._sets.get(set_name)
        if values is None:
            return False
        token = token_of(token)
        return isinstance(token, str) and token in values

    def names(self) -> List[str]:
        return sorted(self._sets)

    def __contains__(self, name: str) -> bool:
        return name in self._sets

    def freeze(self) -> None:
        self._frozen = True


def build_default_enums() -> EnumRegistry:
    """Registry populated with every enumeration the domain schemas use."""
    registry = EnumRegistry()
    registry.register_enum("role", Role)
    registry.register_enum("post_status", PostStatus)
    registry.register_enum("post_category", PostCategory)
    registry.register_enum("post_type", PostType)
    registry.register_enum("amenity", Amenity)
    registry.register_enum("utility", Utility)
    registry.register_enum("error_code", ErrorCode)
    return registry


# Global registry instance (frozen once board_api.contracts.schemas is loaded)
ENUMS = build_default_enums()


def is_member(set_name: str, token: Any) -> bool:
    """Check whether ``token`` belongs to the registered set ``set_name``."""
    return ENUMS.is_member(set_name, token)
