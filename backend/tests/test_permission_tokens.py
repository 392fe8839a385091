"""Tests for permission token parsing and role definition records."""
import pytest

from roleauth.domain.permissions import (
    Access,
    Action,
    CustomRoleDefinition,
    PermissionToken,
    role_token,
)
from roleauth.domain.pointers import Pointer, UserRef
from roleauth.errors import ValidationError


class TestPermissionToken:
    def test_parse_class_and_action(self) -> None:
        token = PermissionToken.parse("Post-create")

        assert token == PermissionToken("Post", Action.CREATE)
        assert token.access is Access.WRITE
        assert token.is_create
        assert str(token) == "Post-create"

    def test_update_maps_to_write_and_read_to_read(self) -> None:
        assert PermissionToken.parse("Post-update").access is Access.WRITE
        assert PermissionToken.parse("Post-read").access is Access.READ
        assert not PermissionToken.parse("Post-update").is_create

    def test_splits_on_last_delimiter(self) -> None:
        assert PermissionToken.parse("Course-Unit-read").subject == "Course-Unit"

    @pytest.mark.parametrize("raw", ["Post", "-read", "Post-delete", "Post-", ""])
    def test_rejects_malformed(self, raw) -> None:
        with pytest.raises(ValidationError):
            PermissionToken.parse(raw)

    def test_rejects_non_string(self) -> None:
        with pytest.raises(ValidationError, match="must be a string"):
            PermissionToken.parse(42)


class TestCustomRoleDefinition:
    def test_malformed_permissions_are_skipped(self) -> None:
        record = {"role": "student", "permissions": ["Post-read", "bogus", "Post-delete"]}

        definition = CustomRoleDefinition.from_record(record)

        assert definition.permissions == (PermissionToken("Post", Action.READ),)
        assert definition.raw_permissions == ("Post-read", "bogus", "Post-delete")

    def test_applies_to_class_name_prefix(self) -> None:
        definition = CustomRoleDefinition.from_record(
            {"role": "student", "permissions": ["PostComment-read"]}
        )

        assert definition.applies_to("PostComment")
        assert definition.applies_to("Post")
        assert not definition.applies_to("Comment")
        assert not definition.applies_to("PostCommentLike")

    def test_root_sentinel(self) -> None:
        root = CustomRoleDefinition.from_record({"role": "root", "permissions": ["all"]})

        assert root.is_root_sentinel
        assert root.permissions == ()

    def test_missing_fields(self) -> None:
        definition = CustomRoleDefinition.from_record({})

        assert definition.role == ""
        assert definition.permissions == ()
        assert not definition.is_root_sentinel


def test_role_token_format() -> None:
    assert role_token("admins") == "role:admins"
    assert role_token("Post", "c1", "write") == "role:Post-c1-write"


class TestPointer:
    def test_round_trip_shape(self) -> None:
        assert Pointer("UBClassRoom", "c1").to_json() == {
            "__type": "Pointer",
            "className": "UBClassRoom",
            "objectId": "c1",
        }

    def test_parse_accepts_missing_type(self) -> None:
        assert Pointer.parse({"className": "Post", "objectId": "p1"}) == Pointer("Post", "p1")

    @pytest.mark.parametrize(
        "value",
        [
            None,
            "c1",
            {"__type": "Date", "className": "Post", "objectId": "p1"},
            {"className": "Post"},
            {"className": "", "objectId": "p1"},
        ],
    )
    def test_parse_rejects(self, value) -> None:
        assert Pointer.parse(value) is None

    def test_from_json_raises(self) -> None:
        with pytest.raises(ValidationError, match="Invalid pointer"):
            Pointer.from_json({"objectId": "x"})


class TestUserRef:
    def test_from_record(self) -> None:
        user = UserRef.from_record(
            {"objectId": "u1", "userRoles": ["author", 3], "generalRole": "mentor"}
        )

        assert user == UserRef(id="u1", user_roles=("author",), general_role="mentor")
        assert user.pointer == Pointer("_User", "u1")

    def test_from_record_requires_object_id(self) -> None:
        with pytest.raises(ValidationError):
            UserRef.from_record({"userRoles": []})
