"""apibreak: public API diffing and semantic version advice."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("apibreak")
except PackageNotFoundError:
    __version__ = "dev"

# Public API exports
from apibreak.api import diff, check, diagnose, DiffResult, CheckResult, CheckIssue, ChangeRecord
from apibreak.codes import TreeErrorCode
from apibreak.kernel.compare import compare
from apibreak.kernel.diagnosis import Diagnosis
from apibreak.kernel.translate import translate
from apibreak.kernel.tree import MalformedTreeError
from apibreak.kernel.version import Version, next_version
from apibreak._internal.io.tree_loader import TreeLoadError

__all__ = [
    "__version__",
    "diff",
    "check",
    "diagnose",
    "translate",
    "compare",
    "next_version",
    "ChangeRecord",
    "CheckIssue",
    "CheckResult",
    "DiffResult",
    "Diagnosis",
    "MalformedTreeError",
    "TreeErrorCode",
    "TreeLoadError",
    "Version",
]
