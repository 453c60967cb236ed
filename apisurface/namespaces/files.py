"""files namespace — the subset of file types referenced by team folder routes."""

from typing import Optional

from pydantic import Field

from apisurface.decorators.core import declare_namespace, struct, union
from apisurface.engine.types import String, Struct, Tag, Union

NAMESPACE = "files"

declare_namespace(NAMESPACE, doc="File and folder sync settings.")

FILE_ID_PATTERN = r"^id:.+$"


@union
class SyncSetting(Union):
    default = Tag(doc="On first sync to members' computers, the specified folder will follow its "
                      "parent folder's setting or otherwise follow default sync behavior.")
    not_synced = Tag(doc="On first sync to members' computers, the specified folder will be set "
                         "to not sync with selective sync.")
    not_synced_inactive = Tag(doc="The specified folder's not_synced setting is inactive due to "
                                  "its location or other configuration changes. It will follow "
                                  "its parent folder's setting.")


@union
class SyncSettingArg(Union):
    default = Tag(doc="On first sync to members' computers, the specified folder will follow its "
                      "parent folder's setting or otherwise follow default sync behavior.")
    not_synced = Tag(doc="On first sync to members' computers, the specified folder will be set "
                         "to not sync with selective sync.")


@struct
class ContentSyncSetting(Struct):
    id: String = Field(min_length=4, pattern=FILE_ID_PATTERN, description="Id of the item this setting is applied to.")
    sync_setting: SyncSetting = Field(description="Setting for this item.")


@struct
class ContentSyncSettingArg(Struct):
    id: String = Field(min_length=4, pattern=FILE_ID_PATTERN, description="Id of the item this setting is applied to.")
    sync_setting: SyncSettingArg = Field(description="Setting for this item.")


@union
class LookupError(Union):
    malformed_path = Tag(Optional[String], doc="The given path does not satisfy the required path format.")
    not_found = Tag(doc="There is nothing at the given path.")
    not_file = Tag(doc="We were expecting a file, but the given path refers to something that isn't a file.")
    not_folder = Tag(doc="We were expecting a folder, but the given path refers to something that isn't a folder.")
    restricted_content = Tag(doc="The file cannot be transferred because the content is restricted.")
    unsupported_content_type = Tag(doc="This operation is not supported for this content type.")
    locked = Tag(doc="The given path is locked.")


@union
class SyncSettingsError(Union):
    path = Tag(LookupError)
    unsupported_combination = Tag(doc="Setting this combination of sync settings simultaneously is not supported.")
    unsupported_configuration = Tag(doc="The specified configuration is not supported.")
