# src/docsalvage/model/registry.py
import importlib
import pkgutil
import logging
from collections import Counter
from typing import Dict, List, Optional, Sequence

from .core import Extension, MarkExtension, NodeExtension
from .schema import Schema

logger = logging.getLogger(__name__)


class ExtensionRegistry:
    """
    Central registry for the built-in extensions.

    Dynamically discovers modules in the 'docsalvage.model.extensions' package that
    expose a `DEFINITION` attribute (an Extension instance) and keys them by name.
    """

    _extensions: Dict[str, Extension] = {}
    _loaded: bool = False

    @classmethod
    def discover(cls) -> None:
        """Discovers and registers all extension definitions in 'docsalvage.model.extensions'."""
        if cls._loaded:
            return

        try:
            import docsalvage.model.extensions as extensions_pkg

            for _, name, _ in pkgutil.iter_modules(extensions_pkg.__path__):
                full_name = f"docsalvage.model.extensions.{name}"
                try:
                    module = importlib.import_module(full_name)
                    if hasattr(module, "DEFINITION") and isinstance(module.DEFINITION, Extension):
                        defn = module.DEFINITION
                        cls._extensions[defn.name] = defn
                        logger.debug(f"Extension loaded: {defn.name}")
                except Exception as e:
                    logger.error(f"Error loading extension module {name}: {e}")

            cls._loaded = True
        except ImportError as e:
            logger.error(f"Could not find extensions package: {e}")

    @classmethod
    def get(cls, name: str) -> Optional[Extension]:
        """Retrieves a built-in extension by name."""
        cls.discover()
        return cls._extensions.get(name)

    @classmethod
    def get_builtin_extensions(cls) -> List[Extension]:
        """Returns all built-in extensions, including the non-schema ones."""
        cls.discover()
        return list(cls._extensions.values())


class ExtensionManager:
    """Resolves an extension list the same way for every build, probe or check."""

    @staticmethod
    def resolve(extensions: Sequence[Extension]) -> List[Extension]:
        """
        Orders extensions by priority, highest first. The sort is stable, so extensions
        with equal priority keep the order in which they were passed.
        """
        resolved = sorted(extensions, key=lambda ext: ext.priority, reverse=True)

        duplicates = [name for name, count in Counter(ext.name for ext in resolved).items() if count > 1]
        if duplicates:
            logger.warning("Duplicate extension names found: %s. This can lead to issues.", duplicates)

        return resolved


def get_schema_by_resolved_extensions(extensions: Sequence[Extension], top_node: str = "doc") -> Schema:
    """Derives a Schema from an already resolved extension list."""
    node_extensions = [ext for ext in extensions if isinstance(ext, NodeExtension)]
    mark_extensions = [ext for ext in extensions if isinstance(ext, MarkExtension)]
    return Schema(node_extensions, mark_extensions, top_node=top_node)


def get_schema(extensions: Sequence[Extension]) -> Schema:
    """Shortcut: resolve the extensions, then derive their schema."""
    return get_schema_by_resolved_extensions(ExtensionManager.resolve(extensions))
