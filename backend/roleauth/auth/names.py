"""Collection and field names the resolution engine reads."""
from typing import Final

from ..domain.pointers import ROLE_CLASS, USER_CLASS

ROLE_DEFINITION_CLASS: Final[str] = "UBRoleDefinition"
USER_ROLE_DEFINITION_CLASS: Final[str] = "UBUserRoleDefinition"
SPACE_MEMBERSHIP_CLASS: Final[str] = "UBClassRoomUser"
DEFAULT_SPACE_CLASS: Final[str] = "UBClassRoom"

# Fields on operation payloads and stored records
SPACE_FIELD: Final[str] = "classRoom"
PARENT_POST_FIELD: Final[str] = "post"
ITEM_TYPE_FIELD: Final[str] = "itemType"
ITEM_ID_FIELD: Final[str] = "itemId"
OBJECT_ID_FIELD: Final[str] = "objectId"

DEFAULT_GENERAL_ROLE: Final[str] = "general"

__all__ = [
    "ROLE_CLASS",
    "USER_CLASS",
    "ROLE_DEFINITION_CLASS",
    "USER_ROLE_DEFINITION_CLASS",
    "SPACE_MEMBERSHIP_CLASS",
    "DEFAULT_SPACE_CLASS",
    "SPACE_FIELD",
    "PARENT_POST_FIELD",
    "ITEM_TYPE_FIELD",
    "ITEM_ID_FIELD",
    "OBJECT_ID_FIELD",
    "DEFAULT_GENERAL_ROLE",
]
