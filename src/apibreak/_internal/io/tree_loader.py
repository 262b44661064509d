"""API tree file I/O (internal)."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

from apibreak.codes import TreeErrorCode
from apibreak.kernel.tree import ApiTree, parse_api_tree

logger = logging.getLogger(__name__)


class TreeLoadError(ValueError):
    """Raised when an API tree file cannot be read or is not JSON."""

    def __init__(self, code: TreeErrorCode, path: Path, message: str):
        self.code = code
        self.path = path
        super().__init__(f"{code.value}: {path}: {message}")


def load_tree_data(path: Union[str, Path]) -> Dict[str, Any]:
    """Read the raw JSON dict of an API tree file (no schema validation)."""
    tree_path = Path(path)
    try:
        data = tree_path.read_bytes()
    except FileNotFoundError:
        raise TreeLoadError(TreeErrorCode.FILE_NOT_FOUND, tree_path, "no such file")
    except OSError as e:
        raise TreeLoadError(TreeErrorCode.FILE_NOT_FOUND, tree_path, e.strerror or str(e)) from e

    try:
        parsed = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise TreeLoadError(TreeErrorCode.INVALID_JSON, tree_path, str(e)) from e

    logger.debug("loaded API tree %s (%d bytes)", tree_path, len(data))
    return parsed


def load_api_tree(path: Union[str, Path]) -> ApiTree:
    """Load and validate an API tree from a JSON file path."""
    return parse_api_tree(load_tree_data(path))
