"""file_requests namespace — file requests collect files from anyone into a Dropbox folder.

A file request is open or closed, may carry a deadline (optionally with a
grace period for late uploads) and counts the files it has received.
"""

from typing import Annotated, List, Optional

from pydantic import Field

from apisurface.decorators.core import declare_namespace, route, struct, union
from apisurface.engine.types import (
    Boolean,
    IdlType,
    Int64,
    String,
    Struct,
    Tag,
    Timestamp,
    UInt64,
    Union,
)

NAMESPACE = "file_requests"

declare_namespace(
    NAMESPACE,
    doc="This namespace contains endpoints and data types for file request operations.",
)

FILE_REQUEST_ID_PATTERN = r"^[-_0-9a-zA-Z]+$"
PATH_PATTERN = r"^/(.|[\r\n])*$"

FileRequestId = Annotated[str, IdlType("String"), Field(min_length=1, pattern=FILE_REQUEST_ID_PATTERN)]

SCOPE_READ = "file_requests.read"
SCOPE_WRITE = "file_requests.write"


# ---------------------------------------------------------------------------
# File request
# ---------------------------------------------------------------------------

@union
class GracePeriod(Union):
    one_day = Tag()
    two_days = Tag()
    seven_days = Tag()
    thirty_days = Tag()
    always = Tag()


@struct
class FileRequestDeadline(Struct):
    deadline: Timestamp = Field(description="The deadline for this file request.")
    allow_late_uploads: Optional[GracePeriod] = Field(
        default=None,
        description="If set, allow uploads after the deadline has passed. "
                    "These uploads will be marked overdue.",
    )


@struct
class FileRequest(Struct):
    """A file request for receiving files into the user's Dropbox account."""

    id: FileRequestId = Field(description="The ID of the file request.")
    url: String = Field(min_length=1, description="The URL of the file request.")
    title: String = Field(min_length=1, description="The title of the file request.")
    destination: Optional[String] = Field(
        default=None,
        pattern=PATH_PATTERN,
        description="The path of the folder in the Dropbox where uploaded files will be sent. "
                    "This can be None if the destination was removed. For apps with the app "
                    "folder permission, this will be relative to the app folder.",
    )
    created: Timestamp = Field(description="When this file request was created.")
    deadline: Optional[FileRequestDeadline] = Field(default=None, description="The deadline for this file request. "
                                                                             "Only set if the request has a deadline.")
    is_open: Boolean = Field(description="Whether or not the file request is open. "
                                         "If the file request is closed, it will not accept any more file submissions.")
    file_count: Int64 = Field(description="The number of files this file request has received.")
    description: Optional[String] = Field(default=None, description="A description of the file request.")


# ---------------------------------------------------------------------------
# Arguments
# ---------------------------------------------------------------------------

@struct
class CreateFileRequestArgs(Struct):
    """Arguments for create."""

    title: String = Field(min_length=1, description="The title of the file request. Must not be empty.")
    destination: String = Field(
        pattern=PATH_PATTERN,
        description="The path of the folder in the Dropbox where uploaded files will be sent. "
                    "For apps with the app folder permission, this will be relative to the app folder.",
    )
    deadline: Optional[FileRequestDeadline] = Field(
        default=None,
        description="The deadline for the file request. Deadlines can only be set by Professional and Business accounts.",
    )
    open: Boolean = Field(default=True, description="Whether or not the file request should be open. "
                                                    "If the file request is closed, it will not accept any file submissions, "
                                                    "but it can be opened later.")
    description: Optional[String] = Field(default=None, description="A description of the file request.")


@struct
class GetFileRequestArgs(Struct):
    """Arguments for get."""

    id: FileRequestId = Field(description="The ID of the file request to retrieve.")


@struct
class DeleteFileRequestArgs(Struct):
    """Arguments for delete."""

    ids: List[FileRequestId] = Field(description="List IDs of the file requests to delete.")


@struct
class ListFileRequestsArg(Struct):
    """Arguments for list:2."""

    limit: UInt64 = Field(default=1000, description="The maximum number of file requests that should be returned per request.")


@struct
class ListFileRequestsContinueArg(Struct):
    cursor: String = Field(description="The cursor returned by the previous API call specified in the endpoint description.")


@union
class UpdateFileRequestDeadline(Union):
    no_update = Tag(doc="Do not change the file request's deadline.")
    update = Tag(Optional[FileRequestDeadline], doc="If None, the file request's deadline is cleared.")


@struct
class UpdateFileRequestArgs(Struct):
    """Arguments for update."""

    id: FileRequestId = Field(description="The ID of the file request to update.")
    title: Optional[String] = Field(default=None, min_length=1, description="The new title of the file request. Must not be empty.")
    destination: Optional[String] = Field(
        default=None,
        pattern=PATH_PATTERN,
        description="The new path of the folder in the Dropbox where uploaded files will be sent.",
    )
    deadline: UpdateFileRequestDeadline = Field(
        default=UpdateFileRequestDeadline.no_update,
        description="The new deadline for the file request. Deadlines can only be set by Professional and Business accounts.",
    )
    open: Optional[Boolean] = Field(default=None, description="Whether to set this file request as open or closed.")
    description: Optional[String] = Field(default=None, description="The description of the file request.")


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@struct
class CountFileRequestsResult(Struct):
    """Result for count."""

    file_request_count: UInt64 = Field(description="The number file requests owner by this user.")


@struct
class ListFileRequestsResult(Struct):
    """Result for list."""

    file_requests: List[FileRequest] = Field(
        description="The file requests owned by this user. Apps with the app folder permission "
                    "will only see file requests in their app folder.",
    )


@struct
class ListFileRequestsV2Result(Struct):
    """Result for list:2 and list/continue."""

    file_requests: List[FileRequest] = Field(
        description="The file requests owned by this user. Apps with the app folder permission "
                    "will only see file requests in their app folder.",
    )
    cursor: String = Field(description="Pass the cursor into list/continue to obtain additional file requests.")
    has_more: Boolean = Field(
        description="Is true if there are additional file requests that have not been returned yet. "
                    "An additional call to list/continue can retrieve them.",
    )


@struct
class DeleteFileRequestsResult(Struct):
    """Result for delete."""

    file_requests: List[FileRequest] = Field(description="The file requests deleted by the request.")


@struct
class DeleteAllClosedFileRequestsResult(Struct):
    """Result for delete_all_closed."""

    file_requests: List[FileRequest] = Field(description="The file requests deleted for this user.")


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

@union
class GeneralFileRequestsError(Union):
    """There is an error accessing the file requests functionality."""

    disabled_for_team = Tag(doc="This user's Dropbox Business team doesn't allow file requests.")


@union
class FileRequestError(GeneralFileRequestsError):
    """There is an error with the file request."""

    not_found = Tag(doc="This file request ID was not found.")
    not_a_folder = Tag(doc="The specified path is not a folder.")
    app_lacks_access = Tag(doc="This file request is not accessible to this app. "
                               "Apps with the app folder permission can only access file requests in their app folder.")
    no_permission = Tag(doc="This user doesn't have permission to access or modify this file request.")
    email_unverified = Tag(doc="This user's email address is not verified. "
                               "File requests are only available on accounts with a verified email address.")
    validation_error = Tag(doc="There was an error validating the request. For example, the title was invalid, "
                               "or there were disallowed characters in the destination path.")


@union
class CountFileRequestsError(GeneralFileRequestsError):
    """There was an error counting the file requests."""


@union
class CreateFileRequestError(FileRequestError):
    """There was an error creating the file request."""

    invalid_location = Tag(doc="File requests are not available on the specified folder.")
    rate_limit = Tag(doc="The user has reached the rate limit for creating file requests. "
                         "The limit is currently 4000 file requests total.")


@union
class GetFileRequestError(FileRequestError):
    """There was an error retrieving the specified file request."""


@union
class UpdateFileRequestError(FileRequestError):
    """There is an error updating the file request."""


@union
class DeleteFileRequestError(FileRequestError):
    """There was an error deleting these file requests."""

    file_request_open = Tag(doc="One or more file requests currently open.")


@union
class DeleteAllClosedFileRequestsError(FileRequestError):
    """There was an error deleting all closed file requests."""


@union
class ListFileRequestsError(GeneralFileRequestsError):
    """There was an error retrieving the file requests."""


@union
class ListFileRequestsContinueError(GeneralFileRequestsError):
    """There was an error retrieving the file requests."""

    invalid_cursor = Tag(doc="The cursor is invalid.")


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

count = route(
    "count",
    None,
    CountFileRequestsResult,
    CountFileRequestsError,
    doc="Returns the total number of file requests owned by this user. Includes both open and closed file requests.",
    scope=SCOPE_READ,
)

create = route(
    "create",
    CreateFileRequestArgs,
    FileRequest,
    CreateFileRequestError,
    doc="Creates a file request for this user.",
    scope=SCOPE_WRITE,
)

delete = route(
    "delete",
    DeleteFileRequestArgs,
    DeleteFileRequestsResult,
    DeleteFileRequestError,
    doc="Delete a batch of closed file requests.",
    scope=SCOPE_WRITE,
)

delete_all_closed = route(
    "delete_all_closed",
    None,
    DeleteAllClosedFileRequestsResult,
    DeleteAllClosedFileRequestsError,
    doc="Delete all closed file requests owned by this user.",
    scope=SCOPE_WRITE,
)

get = route(
    "get",
    GetFileRequestArgs,
    FileRequest,
    GetFileRequestError,
    doc="Returns the specified file request.",
    scope=SCOPE_READ,
)

list_v2 = route(
    "list",
    ListFileRequestsArg,
    ListFileRequestsV2Result,
    ListFileRequestsError,
    version=2,
    doc="Returns a list of file requests owned by this user. For apps with the app folder permission, "
        "this will only return file requests with destinations in the app folder.",
    scope=SCOPE_READ,
)

list_v1 = route(
    "list",
    None,
    ListFileRequestsResult,
    ListFileRequestsError,
    doc="Returns a list of file requests owned by this user. For apps with the app folder permission, "
        "this will only return file requests with destinations in the app folder.",
    scope=SCOPE_READ,
)

list_continue = route(
    "list/continue",
    ListFileRequestsContinueArg,
    ListFileRequestsV2Result,
    ListFileRequestsContinueError,
    doc="Once a cursor has been retrieved from list:2, use this to paginate through all file requests. "
        "The cursor must come from a previous call to list:2 or list/continue.",
    scope=SCOPE_READ,
)

update = route(
    "update",
    UpdateFileRequestArgs,
    FileRequest,
    UpdateFileRequestError,
    doc="Update a file request.",
    scope=SCOPE_WRITE,
)
