"""binrelay: versioned multi-platform binary publishing.

Publishes one binary per platform per release to an S3-compatible store,
reuses the previous release's objects when the build inputs are unchanged,
and keeps ``binary-mapping.json`` pointing at objects that really exist.
"""

__version__ = "0.2.0"

from binrelay.core.publisher import ReleasePublisher
from binrelay.core.resolver import ReuseResolver
from binrelay.cli.app import app as cli

__all__ = ["ReleasePublisher", "ReuseResolver", "cli", "__version__"]
