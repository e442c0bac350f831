"""
Download configuration describing how a tool is delivered for one operating system.
"""
from enum import Enum
from pathlib import PurePath
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .os_match import current_os_name, os_matches

CURRENT_DIR_PREFIX = "./"


class InstallationType(str, Enum):
    """How an installed tool is laid out on disk."""
    STANDARD = "STANDARD"
    GUI_APP = "GUI_APP"


class DescriptorModel(BaseModel):
    """Immutable model parsed from the camelCase message shape."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


class DownloadConfiguration(DescriptorModel):
    os: str
    file_name: str
    target_file_name: str = Field(
        validation_alias=AliasChoices(
            "targetFileName", "agentFileName", "assetFileName", "target_file_name"
        )
    )
    link: str
    installation_type: InstallationType = InstallationType.STANDARD
    bundle_id: Optional[str] = None

    @property
    def is_folder_extraction(self) -> bool:
        """
        True when the target file name is a path of several components, in which
        case the whole archive is extracted rather than a single file. A leading
        "." counts as a component, so "./tool" is a folder extraction.
        """
        name = self.target_file_name
        components = len(PurePath(name).parts)
        if name == "." or name.startswith(CURRENT_DIR_PREFIX):
            components += 1
        return components > 1

    def matches_os(self, os_name: Optional[str]) -> bool:
        return os_matches(self.os, os_name)

    def matches_current_os(self) -> bool:
        return self.matches_os(current_os_name())
