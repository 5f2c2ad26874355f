"""Context object shared across worker threads."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from httpd.bootstrap.config import ServerConfig
from httpd.lifecycle.state import ServerLifecycle


@dataclass
class WorkerContext:
    """Read-only dependencies handed to every handler thread."""

    document_root: Union[str, Path]
    config: Optional[ServerConfig] = None
    lifecycle: Optional[ServerLifecycle] = None
