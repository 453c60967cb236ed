"""sharing namespace — user, invitee and member selector types used by Paper docs."""

from typing import Annotated, Optional

from pydantic import Field

from apisurface.decorators.core import declare_namespace, struct, union
from apisurface.engine.types import Boolean, IdlType, String, Struct, Tag, Union

NAMESPACE = "sharing"

declare_namespace(NAMESPACE, doc="Sharing principals: users, invitees and member selectors.")

EMAIL_PATTERN = r"^['#&A-Za-z0-9._%+-]+@[A-Za-z0-9-][A-Za-z0-9.-]*\.[A-Za-z]{2,15}$"

EmailAddress = Annotated[str, IdlType("String"), Field(max_length=255, pattern=EMAIL_PATTERN)]
AccountId = Annotated[str, IdlType("String"), Field(min_length=40, max_length=40)]


@struct
class UserInfo(Struct):
    """Basic information about a user. Use users.get_account and users.get_account_batch to obtain more detailed information."""

    account_id: AccountId = Field(description="The account ID of the user.")
    email: String = Field(description="Email address of user.")
    display_name: String = Field(description="The display name of the user.")
    same_team: Boolean = Field(description="If the user is in the same team as current user.")
    team_member_id: Optional[String] = Field(
        default=None,
        description="The team member ID of the shared folder member. Only present if same_team is true.",
    )


@union
class InviteeInfo(Union):
    """Information about the recipient of a sharing invitation."""

    email = Tag(EmailAddress, doc="Email address of invited user.")


@union
class MemberSelector(Union):
    """Includes different ways to identify a member of a shared folder."""

    dropbox_id = Tag(Annotated[str, IdlType("String"), Field(min_length=1)],
                     doc="Dropbox account, team member, or group ID of member.")
    email = Tag(EmailAddress, doc="Email address of member.")
