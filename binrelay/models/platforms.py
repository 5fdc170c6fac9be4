"""Platform targets: the fixed set of OS/architecture binaries per release."""

from __future__ import annotations

from enum import Enum


class PlatformTarget(str, Enum):
    """OS/architecture identifiers.

    The value is the platform key written to ``binary-mapping.json`` and
    ``metadata.json``; it is also the suffix of the artifact file name, so the
    Windows target carries its ``.exe`` extension.
    """

    DARWIN_AMD64 = "darwin-amd64"
    DARWIN_ARM64 = "darwin-arm64"
    LINUX_AMD64 = "linux-amd64"
    LINUX_ARM64 = "linux-arm64"
    WINDOWS_AMD64 = "windows-amd64.exe"

    @property
    def os(self) -> str:
        return self.value.split("-", 1)[0]

    @property
    def arch(self) -> str:
        return self.value.split("-", 1)[1].removesuffix(".exe")

    def artifact_name(self, prefix: str) -> str:
        """File name of this platform's binary, e.g. ``mytool-linux-amd64``."""
        return f"{prefix}-{self.value}"


# Iteration order for every per-platform pass. Must stay stable so repeated
# runs against the same store state produce identical plans and logs.
ALL_PLATFORMS: tuple[PlatformTarget, ...] = tuple(PlatformTarget)
