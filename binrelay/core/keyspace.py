"""Object store key layout.

Installers and other readers depend on these keys, so the layout is fixed:

    releases/v<version>/<artifact-name>   one binary per platform per version
    releases/v<version>/metadata.json     ReleaseMetadata record
    binary-mapping.json                   GlobalBinaryMapping singleton
    latest-version.txt                    current version string
    install.sh                            installer, mirrored verbatim
"""

from __future__ import annotations

import re

from binrelay.errors import InvalidVersionError
from binrelay.models.platforms import PlatformTarget

RELEASES_PREFIX = "releases/"
METADATA_NAME = "metadata.json"
MAPPING_KEY = "binary-mapping.json"
LATEST_VERSION_KEY = "latest-version.txt"
INSTALL_SCRIPT_KEY = "install.sh"


def release_prefix(version: str) -> str:
    return f"{RELEASES_PREFIX}v{version}/"


def binary_key(version: str, platform: PlatformTarget, artifact_prefix: str) -> str:
    return release_prefix(version) + platform.artifact_name(artifact_prefix)


def metadata_key(version: str) -> str:
    return release_prefix(version) + METADATA_NAME


_VERSION = re.compile(r"\d[^/]*")


def check_version(version: str) -> str:
    """Return *version* if it can name a release folder.

    A version must start with a digit and may not contain ``/``, so that the
    history search in ``binary_key_pattern`` can find its objects again.
    """
    if not _VERSION.fullmatch(version):
        raise InvalidVersionError(
            f"Invalid release version {version!r}: must start with a digit and contain no /"
        )
    return version


def binary_key_pattern(platform: PlatformTarget, artifact_prefix: str) -> re.Pattern[str]:
    """Regex matching ``releases/v<version>/<artifact>`` for one platform.

    The ``version`` group must start with a digit and cannot span folders.
    """
    name = re.escape(platform.artifact_name(artifact_prefix))
    return re.compile(
        rf"^{re.escape(RELEASES_PREFIX)}v(?P<version>\d[^/]*)/{name}$"
    )
