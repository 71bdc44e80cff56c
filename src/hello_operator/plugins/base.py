"""Plugin contract for the operator."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
import logging

from hello_operator.crd.registry import CRDRegistry

logger = logging.getLogger(__name__)


@dataclass
class OperatorContext:
    """Runtime objects shared with every plugin at startup."""

    config: object
    store: object
    observer: object


class PluginBase(ABC):
    """A unit of operator functionality: CRD models plus the kopf handlers serving them.

    Subclasses set ``name``, ``version``, ``description`` and ``models`` as
    class attributes and implement ``register_handlers``. Startup calls
    ``initialise`` once with the shared OperatorContext, and shutdown calls
    ``shutdown``.
    """

    name = None
    version = "0.0.0"
    description = ""
    models = ()

    def __init__(self):
        if not self.name:
            raise TypeError(f"{type(self).__name__} must set a plugin name")
        self._initialised = False

    @property
    def initialised(self):
        return self._initialised

    def initialise(self, context):
        """Run the plugin's setup hook.

        Returns:
            bool: whether the plugin is ready to serve its handlers
        """
        if self._initialised:
            logger.debug(f"Plugin {self.name} is already initialised")
            return True

        unregistered = [m.__name__ for m in self.models if not CRDRegistry.is_registered(m)]
        if unregistered:
            logger.warning(
                f"Plugin {self.name} ships models without @CRDRegistry.register: "
                f"{', '.join(unregistered)}"
            )

        logger.info(f"Initialising plugin {self.name} v{self.version}")
        try:
            self.setup(context)
        except Exception as e:
            logger.exception(f"Plugin {self.name} failed to initialise: {e}")
            return False

        self._initialised = True
        return True

    def shutdown(self):
        if not self._initialised:
            return
        logger.info(f"Shutting down plugin {self.name}")
        try:
            self.teardown()
        except Exception as e:
            logger.exception(f"Plugin {self.name} failed to shut down cleanly: {e}")
        finally:
            self._initialised = False

    def setup(self, context):
        """Hook for plugin specific startup work."""

    def teardown(self):
        """Hook for plugin specific shutdown work."""

    @abstractmethod
    def register_handlers(self):
        """Make the plugin's kopf handlers known to kopf."""

    def get_health_status(self):
        return {
            "name": self.name,
            "version": self.version,
            "initialised": self._initialised,
            "models_count": len(self.models),
            "status": "healthy" if self._initialised else "not_initialised",
        }
