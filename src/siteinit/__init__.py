"""siteinit - CSM network and SLS state generation from site inputs."""

__version__ = "0.1.0"

from .cli import app  # noqa: E402
from .config import SiteInitConfig  # noqa: E402

__all__ = ["app", "SiteInitConfig"]
