"""Run a package's command, installing it into a throwaway prefix when needed."""

__version__ = "0.1.0"

# Export protocol interfaces for type hints and dependency injection
from npx_runner.protocols import (
    FileSystem,
    PackageManager,
    ProcessRunner,
)

__all__ = [
    "__version__",
    "FileSystem",
    "PackageManager",
    "ProcessRunner",
]
