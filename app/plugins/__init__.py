"""
Built-in metadata format plugins.

Plugins are registered explicitly; a metadataPrefix is served by whichever
plugin id settings map it to (oai.metadata_map).
"""

from .dublin_core import DublinCorePlugin
from .raw_fields import RawFieldsPlugin

BUILTIN_PLUGINS = [
    DublinCorePlugin,
    RawFieldsPlugin,
]

__all__ = [
    "DublinCorePlugin",
    "RawFieldsPlugin",
    "BUILTIN_PLUGINS",
]
