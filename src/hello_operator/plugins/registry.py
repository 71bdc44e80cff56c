"""Discovery and lifecycle management of operator plugins."""

import importlib
import inspect
import logging

from .base import PluginBase

logger = logging.getLogger(__name__)

BUILTIN_PLUGINS = ("hello_operator.plugins.helloworld",)


class PluginRegistry:
    """Holds the plugins of one operator process, in registration order."""

    def __init__(self, builtin_plugins=BUILTIN_PLUGINS):
        self._modules = tuple(builtin_plugins)
        self._plugins = {}

    def discover_plugins(self):
        """Instantiate the PluginBase subclasses defined in the built-in modules.

        Returns:
            int: number of plugins added to the registry
        """
        found = 0
        for module_name in self._modules:
            try:
                module = importlib.import_module(module_name)
            except ImportError as e:
                logger.warning(f"Cannot load plugin module {module_name}: {e}")
                continue

            plugin_classes = [
                cls
                for _, cls in inspect.getmembers(module, inspect.isclass)
                if issubclass(cls, PluginBase)
                and cls.__module__ == module.__name__
                and not inspect.isabstract(cls)
            ]
            for plugin_class in plugin_classes:
                if self.register_plugin(plugin_class()):
                    found += 1

        logger.info(f"Discovered {found} plugin(s): {', '.join(self._plugins)}")
        return found

    def register_plugin(self, plugin):
        """Add a plugin instance. Returns False if it is rejected."""
        if not isinstance(plugin, PluginBase):
            logger.error(f"Not a PluginBase instance: {plugin!r}")
            return False

        existing = self._plugins.get(plugin.name)
        if existing is not None:
            logger.warning(
                f"Plugin {plugin.name} v{plugin.version} ignored, "
                f"v{existing.version} is already registered"
            )
            return False

        self._plugins[plugin.name] = plugin
        return True

    def initialise_all_plugins(self, context):
        """Returns a map of plugin name to initialisation success."""
        results = {name: plugin.initialise(context) for name, plugin in self._plugins.items()}
        failed = [name for name, ok in results.items() if not ok]
        if failed:
            logger.error(f"Plugins failed to initialise: {', '.join(failed)}")
        return results

    def register_all_handlers(self):
        for plugin in self._plugins.values():
            if plugin.initialised:
                plugin.register_handlers()
            else:
                logger.warning(f"Not registering handlers of uninitialised plugin {plugin.name}")

    def shutdown_all_plugins(self):
        # Reverse registration order.
        for plugin in reversed(list(self._plugins.values())):
            plugin.shutdown()

    def list_plugin_names(self):
        return list(self._plugins)

    def get_plugins_health_status(self):
        return {name: plugin.get_health_status() for name, plugin in self._plugins.items()}
