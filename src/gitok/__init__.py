"""
GitOK - status monitor for a folder of git projects.

This package watches the first-level subdirectories of a root folder and
reports which of them are git repositories with uncommitted changes,
unpushed commits or commits waiting to be pulled.
"""

__version__ = "0.1.0"

from gitok.config import Config, load_config
from gitok.engine import GitOkEngine

__all__ = [
    "__version__",
    "Config",
    "GitOkEngine",
    "load_config",
]
