"""
Bulk registration of definitions discovered in a directory tree.

Every Python source file under the base path contributes one definition,
registered under its path relative to the base path (always with ``/``
separators). Files are visited in lexicographic order of that relative path
so keys and registration order are reproducible on every platform.
"""

import importlib.util
import inspect
import logging
import os
from pathlib import Path
from typing import Any, List

from loom.core.registry import KindLike, Registry
from loom.error.application_error import IllegalValueError

logger = logging.getLogger(__name__)

SOURCE_EXTENSIONS = (".py",)
EXPORT_ATTRIBUTE = "__export__"
_PACKAGE_MARKER = "__init__.py"
_SKIPPED_DIRECTORIES = ("__pycache__",)


class DirectoryScanner:
    """Discovers definition files and registers them in a Registry."""

    def __init__(self, registry: Registry):
        self._registry = registry

    def register_tree(self, kind: KindLike, base_path: str) -> List[str]:
        """
        Register every definition file found under base_path.

        Args:
            kind: Registration kind for all discovered definitions
            base_path: Directory to scan recursively

        Returns:
            The registered keys, in registration order

        Raises:
            IllegalValueError: If base_path is not a directory, or a file does
                not export exactly one definition
        """
        if not base_path or not Path(base_path).is_dir():
            raise IllegalValueError(f"Base path '{base_path}' does not exist or is not a directory")

        root = Path(base_path)
        relative_paths = self.list_source_files(root)
        logger.info(f"Registering {len(relative_paths)} definition file(s) from {root}")

        keys = []
        for relative_path in relative_paths:
            definition = self._load_definition(root / relative_path, relative_path)
            self._registry.register(kind, relative_path, definition)
            keys.append(relative_path)
        return keys

    @staticmethod
    def list_source_files(root: Path) -> List[str]:
        """Relative, ``/``-separated paths of source files below root, sorted."""
        found = []
        for directory, subdirectories, files in os.walk(root):
            subdirectories[:] = [
                d for d in subdirectories
                if not d.startswith(".") and d not in _SKIPPED_DIRECTORIES
            ]
            for filename in files:
                if filename.startswith(".") or filename == _PACKAGE_MARKER:
                    continue
                if not filename.endswith(SOURCE_EXTENSIONS):
                    continue
                relative = Path(directory, filename).relative_to(root)
                found.append(relative.as_posix())
        return sorted(found)

    @staticmethod
    def _load_definition(file_path: Path, relative_path: str) -> Any:
        module_name = "loom_scanned_" + relative_path[: -len(file_path.suffix)].replace("/", "_")
        spec = importlib.util.spec_from_file_location(module_name, file_path)
        if spec is None or spec.loader is None:
            raise IllegalValueError(f"Cannot load definition file '{relative_path}'")
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)

        if hasattr(module, EXPORT_ATTRIBUTE):
            return getattr(module, EXPORT_ATTRIBUTE)

        candidates = [
            obj for _, obj in inspect.getmembers(module, inspect.isclass)
            if obj.__module__ == module.__name__
        ]
        if len(candidates) != 1:
            raise IllegalValueError(
                f"Definition file '{relative_path}' must define exactly one class or set "
                f"{EXPORT_ATTRIBUTE}, found {len(candidates)} classes"
            )
        return candidates[0]
