"""team namespace — team folder management (``team_folder/*`` routes).

Team folders move between ``active`` and ``archived`` (via
``archive_in_progress`` while an archive job runs). The transitions are
performed by the server; routes here only declare them. Archiving follows
the launch/poll convention of the ``async`` namespace.
"""

from typing import List, Optional

from pydantic import Field

from apisurface.decorators.core import declare_namespace, route, struct, union
from apisurface.engine.types import Boolean, String, Struct, Tag, UInt32, Union
from apisurface.namespaces.async_jobs import LaunchResultBase, PollArg, PollError, PollResultBase
from apisurface.namespaces.files import (
    ContentSyncSetting,
    ContentSyncSettingArg,
    SyncSetting,
    SyncSettingArg,
    SyncSettingsError,
)

NAMESPACE = "team"

declare_namespace(NAMESPACE, doc="Team administration routes; this surface covers team folders.")

SHARED_FOLDER_ID_PATTERN = r"^[-_0-9a-zA-Z:]+$"

TEAM_SCOPE_READ = "team_data.content.read"
TEAM_SCOPE_WRITE = "team_data.content.write"


# ---------------------------------------------------------------------------
# Team folder metadata
# ---------------------------------------------------------------------------

@union
class TeamFolderStatus(Union):
    active = Tag(doc="The team folder and sub-folders are available to all members.")
    archived = Tag(doc="The team folder is not accessible outside of the team folder manager.")
    archive_in_progress = Tag(doc="The team folder is not accessible outside of the team folder manager.")


@struct
class TeamFolderMetadata(Struct):
    """Properties of a team folder."""

    team_folder_id: String = Field(pattern=SHARED_FOLDER_ID_PATTERN, description="The ID of the team folder.")
    name: String = Field(description="The name of the team folder.")
    status: TeamFolderStatus = Field(description="The status of the team folder.")
    is_team_shared_dropbox: Boolean = Field(description="True if this team folder is a shared team root.")
    sync_setting: SyncSetting = Field(description="The sync setting applied to this team folder.")
    content_sync_settings: List[ContentSyncSetting] = Field(
        description="Sync settings applied to contents of this team folder.",
    )


@union
class TeamFolderGetInfoItem(Union, closed=True):
    id_not_found = Tag(String, doc="An ID that was provided as a parameter to team_folder/get_info "
                                   "did not match any of the team's team folders.")
    team_folder_metadata = Tag(TeamFolderMetadata, doc="Properties of a team folder.")


# ---------------------------------------------------------------------------
# Arguments
# ---------------------------------------------------------------------------

@struct
class TeamFolderIdArg(Struct):
    team_folder_id: String = Field(pattern=SHARED_FOLDER_ID_PATTERN, description="The ID of the team folder.")


@struct
class TeamFolderIdListArg(Struct):
    team_folder_ids: List[String] = Field(min_length=1, description="The list of team folder IDs.")


@struct
class TeamFolderArchiveArg(TeamFolderIdArg):
    force_async_off: Boolean = Field(default=False, description="Whether to force the archive to happen synchronously.")


@struct
class TeamFolderCreateArg(Struct):
    name: String = Field(description="Name for the new team folder.")
    sync_setting: Optional[SyncSettingArg] = Field(
        default=None,
        description="The sync setting to apply to this team folder. Only permitted if the team has team selective sync enabled.",
    )


@struct
class TeamFolderRenameArg(TeamFolderIdArg):
    name: String = Field(description="New team folder name.")


@struct
class TeamFolderUpdateSyncSettingsArg(TeamFolderIdArg):
    sync_setting: Optional[SyncSettingArg] = Field(
        default=None,
        description="Sync setting to apply to the team folder itself. Only meaningful if the team folder is not a shared team root.",
    )
    content_sync_settings: Optional[List[ContentSyncSettingArg]] = Field(
        default=None,
        description="Sync settings to apply to contents of this team folder.",
    )


@struct
class TeamFolderListArg(Struct):
    limit: UInt32 = Field(default=1000, ge=1, le=1000, description="The maximum number of results to return per request.")


@struct
class TeamFolderListContinueArg(Struct):
    cursor: String = Field(description="Indicates from what point to get the next set of team folders.")


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@struct
class TeamFolderListResult(Struct):
    """Result for team_folder/list and team_folder/list/continue."""

    team_folders: List[TeamFolderMetadata] = Field(description="List of all team folders in the authenticated team.")
    cursor: String = Field(
        description="Pass the cursor into team_folder/list/continue to obtain additional team folders.",
    )
    has_more: Boolean = Field(
        description="Is true if there are additional team folders that have not been returned yet. "
                    "An additional call to team_folder/list/continue can retrieve them.",
    )


@union
class TeamFolderArchiveLaunch(LaunchResultBase):
    complete = Tag(TeamFolderMetadata)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

@union
class TeamFolderAccessError(Union):
    invalid_team_folder_id = Tag(doc="The team folder ID is invalid.")
    no_access = Tag(doc="The authenticated app does not have permission to manage that team folder.")


@union
class TeamFolderInvalidStatusError(Union):
    active = Tag(doc="The folder is active and the operation did not succeed.")
    archived = Tag(doc="The folder is archived and the operation did not succeed.")
    archive_in_progress = Tag(doc="The folder is being archived and the operation did not succeed.")


@union
class TeamFolderTeamSharedDropboxError(Union):
    disallowed = Tag(doc="This action is not allowed for a shared team root.")


@union
class BaseTeamFolderError(Union):
    """Base error that all errors for existing team folders should extend."""

    access_error = Tag(TeamFolderAccessError)
    status_error = Tag(TeamFolderInvalidStatusError)
    team_shared_dropbox_error = Tag(TeamFolderTeamSharedDropboxError)


@union
class TeamFolderActivateError(BaseTeamFolderError):
    pass


@union
class TeamFolderArchiveError(BaseTeamFolderError):
    pass


@union
class TeamFolderPermanentlyDeleteError(BaseTeamFolderError):
    pass


@union
class TeamFolderRenameError(BaseTeamFolderError):
    invalid_folder_name = Tag(doc="The provided folder name cannot be used.")
    folder_name_already_used = Tag(doc="There is already a team folder with the same name.")
    folder_name_reserved = Tag(doc="The provided name cannot be used because it is reserved.")


@union
class TeamFolderUpdateSyncSettingsError(BaseTeamFolderError):
    sync_settings_error = Tag(SyncSettingsError, doc="An error occurred setting the sync settings.")


@union
class TeamFolderCreateError(Union):
    invalid_folder_name = Tag(doc="The provided name cannot be used.")
    folder_name_already_used = Tag(doc="There is already a team folder with the provided name.")
    folder_name_reserved = Tag(doc="The provided name cannot be used because it is reserved.")
    sync_settings_error = Tag(SyncSettingsError, doc="An error occurred setting the sync settings.")


@union
class TeamFolderListError(Union):
    access_error = Tag(TeamFolderAccessError)


@union
class TeamFolderListContinueError(Union):
    invalid_cursor = Tag(doc="The cursor is invalid.")


@union
class TeamFolderArchiveJobStatus(PollResultBase):
    complete = Tag(TeamFolderMetadata, doc="The archive job has finished. The value is the metadata "
                                           "for the resulting team folder.")
    failed = Tag(TeamFolderArchiveError, doc="Error occurred while performing an asynchronous job "
                                             "from team_folder/archive.")


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

team_folder_activate = route(
    "team_folder/activate",
    TeamFolderIdArg,
    TeamFolderMetadata,
    TeamFolderActivateError,
    doc="Sets an archived team folder's status to active. Permission : Team member file access.",
    auth="team",
    scope=TEAM_SCOPE_WRITE,
)

team_folder_archive = route(
    "team_folder/archive",
    TeamFolderArchiveArg,
    TeamFolderArchiveLaunch,
    TeamFolderArchiveError,
    doc="Sets an active team folder's status to archived and removes all folder and file members. "
        "This endpoint cannot be used for teams that have a shared team space. "
        "Permission : Team member file access.",
    auth="team",
    scope=TEAM_SCOPE_WRITE,
)

team_folder_archive_check = route(
    "team_folder/archive/check",
    PollArg,
    TeamFolderArchiveJobStatus,
    PollError,
    doc="Returns the status of an asynchronous job for archiving a team folder. "
        "Permission : Team member file access.",
    auth="team",
    scope=TEAM_SCOPE_WRITE,
)

team_folder_create = route(
    "team_folder/create",
    TeamFolderCreateArg,
    TeamFolderMetadata,
    TeamFolderCreateError,
    doc="Creates a new, active, team folder with no members. "
        "This endpoint can only be used for teams that do not already have a shared team space. "
        "Permission : Team member file access.",
    auth="team",
    scope=TEAM_SCOPE_WRITE,
)

team_folder_get_info = route(
    "team_folder/get_info",
    TeamFolderIdListArg,
    List[TeamFolderGetInfoItem],
    None,
    doc="Retrieves metadata for team folders. Permission : Team member file access.",
    auth="team",
    scope=TEAM_SCOPE_READ,
)

team_folder_list = route(
    "team_folder/list",
    TeamFolderListArg,
    TeamFolderListResult,
    TeamFolderListError,
    doc="Lists all team folders. Permission : Team member file access.",
    auth="team",
    scope=TEAM_SCOPE_READ,
)

team_folder_list_continue = route(
    "team_folder/list/continue",
    TeamFolderListContinueArg,
    TeamFolderListResult,
    TeamFolderListContinueError,
    doc="Once a cursor has been retrieved from team_folder/list, use this to paginate through all "
        "team folders. Permission : Team member file access.",
    auth="team",
    scope=TEAM_SCOPE_READ,
)

team_folder_permanently_delete = route(
    "team_folder/permanently_delete",
    TeamFolderIdArg,
    None,
    TeamFolderPermanentlyDeleteError,
    doc="Permanently deletes an archived team folder. This endpoint cannot be used for teams that "
        "have a shared team space. Permission : Team member file access.",
    auth="team",
    scope=TEAM_SCOPE_WRITE,
)

team_folder_rename = route(
    "team_folder/rename",
    TeamFolderRenameArg,
    TeamFolderMetadata,
    TeamFolderRenameError,
    doc="Changes an active team folder's name. Permission : Team member file access.",
    auth="team",
    scope=TEAM_SCOPE_WRITE,
)

team_folder_update_sync_settings = route(
    "team_folder/update_sync_settings",
    TeamFolderUpdateSyncSettingsArg,
    TeamFolderMetadata,
    TeamFolderUpdateSyncSettingsError,
    doc="Updates the sync settings on a team folder or its contents. "
        "Use of this endpoint requires that the team has team selective sync enabled.",
    auth="team",
    scope=TEAM_SCOPE_WRITE,
)
