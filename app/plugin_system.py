import os
import logging
from collections import namedtuple
from typing import List, Dict, Any, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from constants import APP_DIR
from exceptions import ConfigurationException, MetadataRenderException

logger = logging.getLogger('main')

METADATA_TEMPLATES_DIR = os.path.join(APP_DIR, 'templates', 'metadata')

MetadataFormatDescriptor = namedtuple('MetadataFormatDescriptor', ['metadata_prefix', 'schema', 'metadata_namespace'])
MetadataWrapper = namedtuple('MetadataWrapper', ['element', 'attributes'])

_template_env = Environment(
    loader=FileSystemLoader(METADATA_TEMPLATES_DIR),
    autoescape=select_autoescape(default=True, default_for_string=True),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=False,
)


class MetadataFormatPlugin:
    """Base class for metadata format plugins.

    A plugin renders one entity into one metadata schema. Subclasses set
    the class attributes below and implement transform_record().
    """
    id = None
    name = "Base Plugin"
    description = "Base plugin description"
    version = "1.0.0"
    metadata_prefix = None
    schema = ""
    metadata_namespace = ""
    template = None

    def __init__(self, settings=None):
        self.settings = settings or {}

    def on_load(self):
        """Called when plugin is registered"""
        pass

    def get_metadata_format(self) -> MetadataFormatDescriptor:
        return MetadataFormatDescriptor(self.metadata_prefix, self.schema, self.metadata_namespace)

    def get_metadata_wrapper(self) -> MetadataWrapper:
        """Element that wraps the rendered fragment inside <metadata>"""
        return MetadataWrapper(self.metadata_prefix, {})

    def transform_record(self, entity) -> str:
        """Render entity into an XML fragment (the wrapper's children)"""
        raise NotImplementedError

    def build(self, context: Dict[str, Any]) -> str:
        """Render the plugin's template with context"""
        return _template_env.get_template(self.template).render(**context).strip()

    def render_metadata(self, entity) -> str:
        """Full metadata document: the wrapper element around transform_record()"""
        try:
            fragment = self.transform_record(entity)
        except MetadataRenderException:
            raise
        except Exception as e:
            raise MetadataRenderException(f"{self.id} failed on {entity.entity_type}-{entity.entity_id}: {e}")
        wrapper = self.get_metadata_wrapper()
        return _template_env.get_template('wrapper.xml.j2').render(
            element=wrapper.element,
            attributes=sorted(wrapper.attributes.items()),
            fragment=fragment,
        )


class PluginRegistry:
    """Explicit registry of metadata format plugins, keyed by plugin id"""
    def __init__(self, settings=None):
        self.settings = settings or {}
        self.plugins: Dict[str, MetadataFormatPlugin] = {}

    def register(self, plugin_class):
        """Instantiate and register a plugin class"""
        if not plugin_class.id:
            raise ConfigurationException(f"Plugin {plugin_class.__name__} has no id")
        if plugin_class.id in self.plugins:
            raise ConfigurationException(f"Plugin {plugin_class.id} is already registered")

        plugin_instance = plugin_class(self.settings)
        plugin_instance.on_load()
        self.plugins[plugin_class.id] = plugin_instance
        logger.info(f"Loaded plugin: {plugin_instance.name} v{plugin_instance.version} ({plugin_instance.id})")
        return plugin_instance

    def ids(self) -> List[str]:
        return sorted(self.plugins)

    def list_plugins(self) -> List[Dict[str, Any]]:
        """Registered plugins, for display"""
        return [
            {
                'id': plugin.id,
                'name': plugin.name,
                'version': plugin.version,
                'description': plugin.description,
                'metadata_prefix': plugin.metadata_prefix,
            }
            for plugin in (self.plugins[plugin_id] for plugin_id in self.ids())
        ]

    def for_prefix(self, metadata_prefix, metadata_map) -> Optional[MetadataFormatPlugin]:
        """Plugin mapped to metadata_prefix, None when the prefix is unsupported"""
        plugin_id = (metadata_map or {}).get(metadata_prefix)
        if plugin_id is None or plugin_id not in self.plugins:
            return None
        return self.plugins[plugin_id]

    def formats(self, metadata_map) -> List[MetadataFormatDescriptor]:
        """Descriptors of every supported metadataPrefix, in prefix order"""
        descriptors = []
        for prefix in sorted(metadata_map or {}):
            plugin = self.for_prefix(prefix, metadata_map)
            if plugin is None:
                logger.warning(f"metadataPrefix {prefix} maps to unregistered plugin {metadata_map[prefix]}")
                continue
            descriptor = plugin.get_metadata_format()
            descriptors.append(descriptor._replace(metadata_prefix=prefix))
        return descriptors


def get_plugin_registry(settings=None, plugin_classes=None):
    """Registry populated with the built-in plugins (or plugin_classes)"""
    if plugin_classes is None:
        from plugins import BUILTIN_PLUGINS
        plugin_classes = BUILTIN_PLUGINS
    registry = PluginRegistry(settings)
    for plugin_class in plugin_classes:
        registry.register(plugin_class)
    return registry
