from __future__ import annotations

import re
from typing import Self

from pydantic import BaseModel, ConfigDict

_INSTANCE_PATH = re.compile(r"^projects/(?P<project>[^/]+)/zones/(?P<zone>[^/]+)/instances/(?P<name>[^/]+)$")
_IMAGE_PATH = re.compile(r"^projects/(?P<project>[^/]+)/global/images/(?P<name>[^/]+)$")

_API_PREFIXES = (
    "https://www.googleapis.com/compute/v1/",
    "https://compute.googleapis.com/compute/v1/",
)


def _strip_prefix(path: str) -> str:
    for prefix in _API_PREFIXES:
        if path.startswith(prefix):
            return path[len(prefix) :]
    return path


class InstanceReference(BaseModel):
    model_config = ConfigDict(frozen=True)

    project_id: str
    zone: str
    name: str

    @classmethod
    def from_string(cls, path: str) -> Self:
        """Parse `projects/{project}/zones/{zone}/instances/{name}`.

        Full API URLs are accepted as well.
        """
        match = _INSTANCE_PATH.match(_strip_prefix(path))
        if not match:
            msg = f"Not a valid instance reference: '{path}'"
            raise ValueError(msg)
        return cls(project_id=match["project"], zone=match["zone"], name=match["name"])

    def __str__(self) -> str:
        return f"projects/{self.project_id}/zones/{self.zone}/instances/{self.name}"


class ImageReference(BaseModel):
    model_config = ConfigDict(frozen=True)

    project_id: str
    name: str

    @classmethod
    def from_string(cls, path: str) -> Self:
        """Parse `projects/{project}/global/images/{name}`."""
        match = _IMAGE_PATH.match(_strip_prefix(path))
        if not match:
            msg = f"Not a valid image reference: '{path}'"
            raise ValueError(msg)
        return cls(project_id=match["project"], name=match["name"])

    def __str__(self) -> str:
        return f"projects/{self.project_id}/global/images/{self.name}"
