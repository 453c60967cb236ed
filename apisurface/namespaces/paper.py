"""paper namespace — collaborative Paper documents and folders.

Document listings page through results with a Cursor: the initial call
returns a cursor and ``has_more``; the paired ``.../continue`` route takes the
cursor back. Cursors may expire, be reset, or belong to another user; such
cases come back through PaperApiCursorError.

Updates are optimistic: the caller passes the revision it last saw and gets
``revision_mismatch`` if the document has moved on.

All routes of this namespace are deprecated in favour of the files
namespace for Paper-in-Dropbox documents.
"""

from datetime import datetime, timezone
from typing import Annotated, List, Optional

from pydantic import Field

from apisurface.decorators.core import declare_namespace, route, struct, union
from apisurface.engine.types import (
    Boolean,
    Int32,
    Int64,
    String,
    Struct,
    Tag,
    Timestamp,
    Union,
)
from apisurface.namespaces.sharing import InviteeInfo, MemberSelector, UserInfo

NAMESPACE = "paper"

declare_namespace(
    NAMESPACE,
    doc="This namespace contains endpoints and data types for managing docs and folders in Dropbox Paper.",
)

PaperDocId = String
ListLimit = Annotated[Int32, Field(ge=1, le=1000)]

SCOPE_READ = "files.content.read"
SCOPE_WRITE = "files.content.write"
SCOPE_SHARING_READ = "sharing.read"
SCOPE_SHARING_WRITE = "sharing.write"


# ---------------------------------------------------------------------------
# Common
# ---------------------------------------------------------------------------

@struct
class RefPaperDoc(Struct):
    doc_id: PaperDocId = Field(description="The Paper doc ID.")


@struct
class Cursor(Struct):
    value: String = Field(
        description="The actual cursor value.",
    )
    expiration: Optional[Timestamp] = Field(
        default=None,
        description="Expiration time of value. Some cursors might have expiration time assigned. "
                    "This is a UTC value after which the cursor is no longer valid and the API "
                    "starts returning an error. If cursor expires a new one needs to be obtained "
                    "and pagination needs to be restarted. Some cursors might be short-lived "
                    "some cursors might be long-lived. This really depends on the sorting type "
                    "and order, e.g.: 1. on one hand, listing docs created by the user, sorted by "
                    "the created time ascending will have undefinite expiration because the "
                    "results cannot change while the iteration is happening. This cursor would "
                    "be suitable for long term polling. 2. on the other hand, listing docs sorted "
                    "by the last modified time will have a very short expiration as docs do get "
                    "modified very often and the modified time can be changed while the iteration "
                    "is happening thus altering the results.",
    )

    def is_expired(self, now=None) -> bool:
        """True once the expiration (if any) has passed."""
        if self.expiration is None:
            return False
        now = now or datetime.now(timezone.utc)
        expiration = self.expiration
        if expiration.tzinfo is None:
            expiration = expiration.replace(tzinfo=timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return now >= expiration


@union
class PaperApiBaseError(Union):
    insufficient_permissions = Tag(doc="Your account does not have permissions to perform this action. "
                                       "This may be due to it only having access to Paper as files in the "
                                       "Dropbox filesystem. For more information, refer to the Paper Migration Guide.")


@union
class DocLookupError(PaperApiBaseError):
    doc_not_found = Tag(doc="The required doc was not found.")


@union
class PaperApiCursorError(Union):
    expired_cursor = Tag(doc="The provided cursor is expired.")
    invalid_cursor = Tag(doc="The provided cursor is invalid.")
    wrong_user_in_cursor = Tag(doc="The provided cursor contains invalid user.")
    reset = Tag(doc="Indicates that the cursor has been invalidated. Call the corresponding "
                    "non-continue endpoint to obtain a new cursor.")


@union
class ListDocsCursorError(Union):
    cursor_error = Tag(PaperApiCursorError)


# ---------------------------------------------------------------------------
# Listing docs
# ---------------------------------------------------------------------------

@union
class ListPaperDocsFilterBy(Union):
    docs_accessed = Tag(doc="Fetches all Paper doc IDs that the user has ever accessed.")
    docs_created = Tag(doc="Fetches only the Paper doc IDs that the user has created.")


@union
class ListPaperDocsSortBy(Union):
    accessed = Tag(doc="Sorts the Paper docs by the time they were last accessed.")
    modified = Tag(doc="Sorts the Paper docs by the time they were last modified.")
    created = Tag(doc="Sorts the Paper docs by the creation time.")


@union
class ListPaperDocsSortOrder(Union):
    ascending = Tag(doc="Sorts the search result in ascending order.")
    descending = Tag(doc="Sorts the search result in descending order.")


@struct
class ListPaperDocsArgs(Struct):
    filter_by: ListPaperDocsFilterBy = Field(
        default=ListPaperDocsFilterBy.docs_accessed,
        description="Allows user to specify how the Paper docs should be filtered.",
    )
    sort_by: ListPaperDocsSortBy = Field(
        default=ListPaperDocsSortBy.accessed,
        description="Allows user to specify how the Paper docs should be sorted.",
    )
    sort_order: ListPaperDocsSortOrder = Field(
        default=ListPaperDocsSortOrder.ascending,
        description="Allows user to specify the sort order of the result.",
    )
    limit: ListLimit = Field(
        default=1000,
        description="Size limit per batch. The maximum number of docs that can be retrieved per batch is 1000. "
                    "Higher value results in invalid arguments error.",
    )


@struct
class ListPaperDocsContinueArgs(Struct):
    cursor: String = Field(description="The cursor obtained from docs/list or docs/list/continue. "
                                       "Allows for pagination.")


@struct
class ListPaperDocsResponse(Struct):
    doc_ids: List[PaperDocId] = Field(description="The list of Paper doc IDs that can be used to access the "
                                                  "given Paper docs or supplied to other API methods. The list is "
                                                  "sorted in the order specified by the initial call to docs/list.")
    cursor: Cursor = Field(description="Pass the cursor into docs/list/continue to paginate through all files. "
                                       "The cursor preserves all properties as specified in the original call to docs/list.")
    has_more: Boolean = Field(description="Will be set to True if a subsequent call with the provided cursor to "
                                          "docs/list/continue returns immediately with some results. If set to False "
                                          "please allow some delay before making another call to docs/list/continue.")


# ---------------------------------------------------------------------------
# Import / export
# ---------------------------------------------------------------------------

@union
class ExportFormat(Union):
    """The desired export format of the Paper doc."""

    html = Tag(doc="The HTML export format.")
    markdown = Tag(doc="The markdown export format.")


@union
class ImportFormat(Union):
    """The import format of the incoming data."""

    html = Tag(doc="The provided data is interpreted as standard HTML.")
    markdown = Tag(doc="The provided data is interpreted as markdown. The first line of the provided "
                       "document will be used as the doc title.")
    plain_text = Tag(doc="The provided data is interpreted as plain text. The first line of the provided "
                         "document will be used as the doc title.")


@struct
class PaperDocExport(RefPaperDoc):
    export_format: ExportFormat


@struct
class PaperDocExportResult(Struct):
    owner: String = Field(description="The Paper doc owner's email address.")
    title: String = Field(description="The Paper doc title.")
    revision: Int64 = Field(description="The Paper doc revision. Simply an ever increasing number.")
    mime_type: String = Field(description="MIME type of the export. This corresponds to ExportFormat specified in the request.")


@struct
class PaperDocCreateArgs(Struct):
    parent_folder_id: Optional[String] = Field(
        default=None,
        description="The Paper folder ID where the Paper document should be created. "
                    "The API user has to have write access to this folder or error is thrown.",
    )
    import_format: ImportFormat = Field(description="The format of provided data.")


@struct
class PaperDocCreateUpdateResult(Struct):
    doc_id: String = Field(description="Doc ID of the newly created doc.")
    revision: Int64 = Field(description="The Paper doc revision. Simply an ever increasing number.")
    title: String = Field(description="The Paper doc title.")


@union
class PaperDocCreateError(PaperApiBaseError):
    content_malformed = Tag(doc="The provided content was malformed and cannot be imported to Paper.")
    folder_not_found = Tag(doc="The specified Paper folder is cannot be found.")
    doc_length_exceeded = Tag(doc="The newly created Paper doc would be too large. Please split the content into multiple docs.")
    image_size_exceeded = Tag(doc="The imported document contains an image that is too large. "
                                  "The current limit is 1MB. This only applies to HTML with data URI.")


@union
class PaperDocUpdatePolicy(Union):
    append = Tag(doc="The content will be appended to the doc.")
    prepend = Tag(doc="The content will be prepended to the doc. The doc title will not be affected.")
    overwrite_all = Tag(doc="The document will be overwitten at the head with the provided content.")


@struct
class PaperDocUpdateArgs(RefPaperDoc):
    doc_update_policy: PaperDocUpdatePolicy = Field(description="The policy used for the current update call.")
    revision: Int64 = Field(description="The latest doc revision. This value must match the head revision "
                                        "or an error code will be returned. This is to prevent colliding writes.")
    import_format: ImportFormat = Field(description="The format of provided data.")


@union
class PaperDocUpdateError(DocLookupError):
    content_malformed = Tag(doc="The provided content was malformed and cannot be imported to Paper.")
    revision_mismatch = Tag(doc="The provided revision does not match the document head.")
    doc_length_exceeded = Tag(doc="The newly created Paper doc would be too large, split the content into multiple docs.")
    image_size_exceeded = Tag(doc="The imported document contains an image that is too large. "
                                  "The current limit is 1MB. This only applies to HTML with data URI.")
    doc_archived = Tag(doc="This operation is not allowed on archived Paper docs.")
    doc_deleted = Tag(doc="This operation is not allowed on deleted Paper docs.")


# ---------------------------------------------------------------------------
# Folders
# ---------------------------------------------------------------------------

@union
class FolderSharingPolicyType(Union, closed=True):
    """The sharing policy of a Paper folder. The sharing policy of subfolders is inherited from the root folder."""

    team = Tag(doc="Everyone in your team and anyone directly invited can access this folder.")
    invite_only = Tag(doc="Only people directly invited can access this folder.")


@struct
class Folder(Struct):
    """Data structure representing a Paper folder."""

    id: String = Field(description="Paper folder ID. This ID uniquely identifies the folder.")
    name: String = Field(description="Paper folder name.")


@struct
class FoldersContainingPaperDoc(Struct):
    """Metadata about Paper folders containing the specififed Paper doc."""

    folder_sharing_policy_type: Optional[FolderSharingPolicyType] = Field(
        default=None,
        description="The sharing policy of the folder containing the Paper doc.",
    )
    folders: Optional[List[Folder]] = Field(
        default=None,
        description="The folder path. If present the first folder is the root folder.",
    )


@struct
class PaperFolderCreateArg(Struct):
    name: String = Field(description="The name of the new Paper folder.")
    parent_folder_id: Optional[String] = Field(
        default=None,
        description="The encrypted Paper folder Id where the new Paper folder should be created. "
                    "The API user has to have write access to this folder or error is thrown. "
                    "If not supplied, the new folder will be created at top level.",
    )
    is_team_folder: Optional[Boolean] = Field(
        default=None,
        description="Whether the folder to be created should be a team folder. This value will be "
                    "ignored if parent_folder_id is supplied, as the new folder will inherit the type "
                    "(private or team folder) from its parent. We will by default create a top-level "
                    "private folder if both parent_folder_id and is_team_folder are not supplied.",
    )


@struct
class PaperFolderCreateResult(Struct):
    folder_id: String = Field(description="Folder ID of the newly created folder.")


@union
class PaperFolderCreateError(PaperApiBaseError):
    folder_not_found = Tag(doc="The specified parent Paper folder cannot be found.")
    invalid_folder_id = Tag(doc="The folder id cannot be decrypted to valid folder id.")


# ---------------------------------------------------------------------------
# Sharing policy
# ---------------------------------------------------------------------------

@union
class SharingTeamPolicyType(Union, closed=True):
    """The sharing policy type of the Paper doc."""

    people_with_link_can_edit = Tag(doc="Users who have a link to this doc can edit it.")
    people_with_link_can_view_and_comment = Tag(doc="Users who have a link to this doc can view and comment on it.")
    invite_only = Tag(doc="Users must be explicitly invited to this doc.")


@union
class SharingPublicPolicyType(SharingTeamPolicyType):
    disabled = Tag(doc="Value used to indicate that doc sharing is enabled only within team.")


@struct
class SharingPolicy(Struct):
    """Sharing policy of Paper doc."""

    public_sharing_policy: Optional[SharingPublicPolicyType] = Field(
        default=None,
        description="This value applies to the non-team members.",
    )
    team_sharing_policy: Optional[SharingTeamPolicyType] = Field(
        default=None,
        description="This value applies to the team members only. The value is null for all personal accounts.",
    )


@struct
class PaperDocSharingPolicy(RefPaperDoc):
    sharing_policy: SharingPolicy = Field(description="The default sharing policy to be set for the Paper doc.")


# ---------------------------------------------------------------------------
# Doc members
# ---------------------------------------------------------------------------

@union
class PaperDocPermissionLevel(Union):
    edit = Tag(doc="User will be granted edit permissions.")
    view_and_comment = Tag(doc="User will be granted view and comment permissions.")


@struct
class AddMember(Struct):
    permission_level: PaperDocPermissionLevel = Field(
        default=PaperDocPermissionLevel.edit,
        description="Permission for the user.",
    )
    member: MemberSelector = Field(description="User which should be added to the Paper doc. "
                                               "Specify only email address or Dropbox account ID.")


@struct
class AddPaperDocUser(RefPaperDoc):
    members: List[AddMember] = Field(max_length=20, description="User which should be added to the Paper doc. "
                                                               "Specify only email address or Dropbox account ID.")
    custom_message: Optional[String] = Field(
        default=None,
        description="A personal message that will be emailed to each successfully added member.",
    )
    quiet: Boolean = Field(default=False, description="Clients should set this to true if no email message shall be "
                                                      "sent to added users.")


@union
class AddPaperDocUserResult(Union):
    success = Tag(doc="User was successfully added to the Paper doc.")
    unknown_error = Tag(doc="Something unexpected happened when trying to add the user to the Paper doc.")
    sharing_outside_team_disabled = Tag(doc="The Paper doc can be shared only with team members.")
    daily_limit_reached = Tag(doc="The daily limit of how many users can be added to the Paper doc was reached.")
    user_is_owner = Tag(doc="Owner's permissions cannot be changed.")
    failed_user_data_retrieval = Tag(doc="User data could not be retrieved. Clients should retry.")
    permission_already_granted = Tag(doc="This user already has the correct permission to the Paper doc.")


@struct
class AddPaperDocUserMemberResult(Struct):
    member: MemberSelector = Field(description="One of specified input members.")
    result: AddPaperDocUserResult = Field(description="The outcome of the action on this member.")


@struct
class RemovePaperDocUser(RefPaperDoc):
    member: MemberSelector = Field(description="User which should be removed from the Paper doc. "
                                               "Specify only email address or Dropbox account ID.")


@union
class UserOnPaperDocFilter(Union):
    visited = Tag(doc="all users who have visited the Paper doc.")
    shared = Tag(doc="All uses who are shared on the Paper doc. This includes all users who have visited "
                     "the Paper doc as well as those who have not.")


@struct
class ListUsersOnPaperDocArgs(RefPaperDoc):
    limit: ListLimit = Field(default=1000, description="Size limit per batch. The maximum number of users that can be "
                                                       "retrieved per batch is 1000. Higher value results in invalid "
                                                       "arguments error.")
    filter_by: UserOnPaperDocFilter = Field(
        default=UserOnPaperDocFilter.shared,
        description="Specify this attribute if you want to obtain users that have already accessed the Paper doc.",
    )


@struct
class ListUsersOnPaperDocContinueArgs(RefPaperDoc):
    cursor: String = Field(description="The cursor obtained from docs/users/list or docs/users/list/continue. "
                                       "Allows for pagination.")


@struct
class UserInfoWithPermissionLevel(Struct):
    user: UserInfo = Field(description="User shared on the Paper doc.")
    permission_level: PaperDocPermissionLevel = Field(description="Permission level for the user.")


@struct
class InviteeInfoWithPermissionLevel(Struct):
    invitee: InviteeInfo = Field(description="Email address invited to the Paper doc.")
    permission_level: PaperDocPermissionLevel = Field(description="Permission level for the invitee.")


@struct
class ListUsersOnPaperDocResponse(Struct):
    invitees: List[InviteeInfoWithPermissionLevel] = Field(
        description="List of email addresses with their respective permission levels that are invited on "
                    "the Paper doc.",
    )
    users: List[UserInfoWithPermissionLevel] = Field(
        description="List of users with their respective permission levels that are invited on the Paper folder.",
    )
    doc_owner: UserInfo = Field(description="The Paper doc owner. This field is populated on every single response.")
    cursor: Cursor = Field(description="Pass the cursor into docs/users/list/continue to paginate through all users. "
                                       "The cursor preserves all properties as specified in the original call to "
                                       "docs/users/list.")
    has_more: Boolean = Field(description="Will be set to True if a subsequent call with the provided cursor to "
                                          "docs/users/list/continue returns immediately with some results. If set to "
                                          "False please allow some delay before making another call to "
                                          "docs/users/list/continue.")


@struct
class ListUsersOnFolderArgs(RefPaperDoc):
    limit: ListLimit = Field(default=1000, description="Size limit per batch. The maximum number of users that can be "
                                                       "retrieved per batch is 1000. Higher value results in invalid "
                                                       "arguments error.")


@struct
class ListUsersOnFolderContinueArgs(RefPaperDoc):
    cursor: String = Field(description="The cursor obtained from docs/folder_users/list or "
                                       "docs/folder_users/list/continue. Allows for pagination.")


@struct
class ListUsersOnFolderResponse(Struct):
    invitees: List[InviteeInfo] = Field(description="List of email addresses that are invited on the Paper folder.")
    users: List[UserInfo] = Field(description="List of users that are invited on the Paper folder.")
    cursor: Cursor = Field(description="Pass the cursor into docs/folder_users/list/continue to paginate through "
                                       "all users. The cursor preserves all properties as specified in the original "
                                       "call to docs/folder_users/list.")
    has_more: Boolean = Field(description="Will be set to True if a subsequent call with the provided cursor to "
                                          "docs/folder_users/list/continue returns immediately with some results. If "
                                          "set to False please allow some delay before making another call to "
                                          "docs/folder_users/list/continue.")


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

docs_archive = route(
    "docs/archive",
    RefPaperDoc,
    None,
    DocLookupError,
    doc="Marks the given Paper doc as archived. This action can be performed or undone by anyone with edit "
        "permissions to the doc. Note that this endpoint will continue to work for content created by users "
        "on the older version of Paper.",
    deprecated=True,
    scope=SCOPE_WRITE,
)

docs_create = route(
    "docs/create",
    PaperDocCreateArgs,
    PaperDocCreateUpdateResult,
    PaperDocCreateError,
    doc="Creates a new Paper doc with the provided content.",
    deprecated=True,
    style="upload",
    scope=SCOPE_WRITE,
)

docs_download = route(
    "docs/download",
    PaperDocExport,
    PaperDocExportResult,
    DocLookupError,
    doc="Exports and downloads Paper doc either as HTML or markdown.",
    deprecated=True,
    style="download",
    host="content",
    scope=SCOPE_READ,
)

docs_folder_users_list = route(
    "docs/folder_users/list",
    ListUsersOnFolderArgs,
    ListUsersOnFolderResponse,
    DocLookupError,
    doc="Lists the users who are explicitly invited to the Paper folder in which the Paper doc is contained. "
        "For private folders all users (including owner) shared on the folder are listed and for team folders "
        "all non-team users shared on the folder are returned.",
    deprecated=True,
    scope=SCOPE_SHARING_READ,
)

docs_folder_users_list_continue = route(
    "docs/folder_users/list/continue",
    ListUsersOnFolderContinueArgs,
    ListUsersOnFolderResponse,
    ListDocsCursorError,
    doc="Once a cursor has been retrieved from docs/folder_users/list, use this to paginate through all users "
        "on the Paper folder.",
    deprecated=True,
    scope=SCOPE_SHARING_READ,
)

docs_get_folder_info = route(
    "docs/get_folder_info",
    RefPaperDoc,
    FoldersContainingPaperDoc,
    DocLookupError,
    doc="Retrieves folder information for the given Paper doc. This includes: - folder sharing policy; "
        "permissions for subfolders are set by the top-level folder. - full 'filepath', i.e. the list of "
        "folders (both folderId and folderName) from the root folder to the folder directly containing the "
        "Paper doc. If the Paper doc is not in any folder (aka unfiled) the response will be empty.",
    deprecated=True,
    scope=SCOPE_SHARING_READ,
)

docs_list = route(
    "docs/list",
    ListPaperDocsArgs,
    ListPaperDocsResponse,
    None,
    doc="Return the list of all Paper docs according to the argument specifications. To iterate over through "
        "the full pagination, pass the cursor to docs/list/continue.",
    deprecated=True,
    scope=SCOPE_READ,
)

docs_list_continue = route(
    "docs/list/continue",
    ListPaperDocsContinueArgs,
    ListPaperDocsResponse,
    ListDocsCursorError,
    doc="Once a cursor has been retrieved from docs/list, use this to paginate through all Paper doc.",
    deprecated=True,
    scope=SCOPE_READ,
)

docs_permanently_delete = route(
    "docs/permanently_delete",
    RefPaperDoc,
    None,
    DocLookupError,
    doc="Permanently deletes the given Paper doc. This operation is final as the doc cannot be recovered. "
        "This action can be performed only by the doc owner.",
    deprecated=True,
    scope=SCOPE_WRITE,
)

docs_sharing_policy_get = route(
    "docs/sharing_policy/get",
    RefPaperDoc,
    SharingPolicy,
    DocLookupError,
    doc="Gets the default sharing policy for the given Paper doc.",
    deprecated=True,
    scope=SCOPE_SHARING_READ,
)

docs_sharing_policy_set = route(
    "docs/sharing_policy/set",
    PaperDocSharingPolicy,
    None,
    DocLookupError,
    doc="Sets the default sharing policy for the given Paper doc. The default 'team_sharing_policy' can be "
        "changed only by teams, omit this field for personal accounts. The 'public_sharing_policy' policy "
        "can't be set to the value 'disabled' because this setting can be changed only via the team admin console.",
    deprecated=True,
    scope=SCOPE_SHARING_WRITE,
)

docs_update = route(
    "docs/update",
    PaperDocUpdateArgs,
    PaperDocCreateUpdateResult,
    PaperDocUpdateError,
    doc="Updates an existing Paper doc with the provided content.",
    deprecated=True,
    style="upload",
    scope=SCOPE_WRITE,
)

docs_users_add = route(
    "docs/users/add",
    AddPaperDocUser,
    List[AddPaperDocUserMemberResult],
    DocLookupError,
    doc="Allows an owner or editor to add users to a Paper doc or change their permissions using their email "
        "address or Dropbox account ID. The doc owner's permissions cannot be changed.",
    deprecated=True,
    scope=SCOPE_SHARING_WRITE,
)

docs_users_list = route(
    "docs/users/list",
    ListUsersOnPaperDocArgs,
    ListUsersOnPaperDocResponse,
    DocLookupError,
    doc="Lists all users who visited the Paper doc or users with explicit access. This call excludes users "
        "who have been removed. The list is sorted by the date of the visit or the share date.",
    deprecated=True,
    scope=SCOPE_SHARING_READ,
)

docs_users_list_continue = route(
    "docs/users/list/continue",
    ListUsersOnPaperDocContinueArgs,
    ListUsersOnPaperDocResponse,
    ListDocsCursorError,
    doc="Once a cursor has been retrieved from docs/users/list, use this to paginate through all users on "
        "the Paper doc.",
    deprecated=True,
    scope=SCOPE_SHARING_READ,
)

docs_users_remove = route(
    "docs/users/remove",
    RemovePaperDocUser,
    None,
    DocLookupError,
    doc="Allows an owner or editor to remove users from a Paper doc using their email address or Dropbox account ID. "
        "The doc owner cannot be removed.",
    deprecated=True,
    scope=SCOPE_SHARING_WRITE,
)

folders_create = route(
    "folders/create",
    PaperFolderCreateArg,
    PaperFolderCreateResult,
    PaperFolderCreateError,
    doc="Create a new Paper folder with the provided info.",
    deprecated=True,
    style="upload",
    scope=SCOPE_WRITE,
)
