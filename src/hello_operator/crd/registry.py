"""Registry of the custom resources served by the operator."""

import importlib
import logging
import pkgutil
from typing import NamedTuple, Optional

logger = logging.getLogger(__name__)

# Filled by CRDRegistry.register as model modules are imported.
_RESOURCES = {}


class CRDResource(NamedTuple):
    """Names and models backing one CustomResourceDefinition."""

    spec_model: type
    group: str
    version: str
    kind: str
    plural: str
    scope: str = "Namespaced"
    status_model: Optional[type] = None

    @property
    def key(self):
        return f"{self.group}/{self.version}/{self.kind}"

    @property
    def singular(self):
        return self.kind.lower()

    @property
    def crd_name(self):
        return f"{self.plural}.{self.group}"


class CRDRegistry:
    """Looks up resources declared with ``@CRDRegistry.register``."""

    def __init__(self, package_paths=None):
        self.package_paths = package_paths or ["hello_operator.models"]

    @staticmethod
    def register(group, version, kind, plural=None, scope="Namespaced", status=None):
        """Class decorator declaring a spec model as a custom resource.

        Args:
            group: API group, e.g. ``apps.example.com``
            version: served and stored version, e.g. ``v1``
            kind: resource kind, e.g. ``HelloWorld``
            plural: defaults to the lower-cased kind plus ``s``
            scope: ``Namespaced`` or ``Cluster``
            status: model describing the status sub-resource
        """

        def decorator(model_class):
            if not getattr(model_class, "model_fields", None):
                raise ValueError(f"{model_class.__name__} declares no spec fields")

            resource = CRDResource(
                spec_model=model_class,
                group=group,
                version=version,
                kind=kind,
                plural=plural or f"{kind.lower()}s",
                scope=scope,
                status_model=status,
            )
            model_class.__crd__ = resource
            _RESOURCES[resource.key] = resource
            logger.debug(f"Registered custom resource {resource.key}")
            return model_class

        return decorator

    @staticmethod
    def is_registered(model_class):
        return isinstance(getattr(model_class, "__crd__", None), CRDResource)

    def discover_models(self):
        """Import the model packages so their register decorators run."""
        for package_path in self.package_paths:
            try:
                package = importlib.import_module(package_path)
            except ImportError as e:
                logger.warning(f"Cannot import model package {package_path}: {e}")
                continue

            for module in pkgutil.iter_modules(package.__path__, f"{package_path}."):
                try:
                    importlib.import_module(module.name)
                except ImportError as e:
                    logger.warning(f"Skipping model module {module.name}: {e}")

    def resources(self):
        return sorted(_RESOURCES.values(), key=lambda resource: resource.key)

    def schema_is_valid(self, model_class):
        """True if the model yields a JSON schema with object properties."""
        try:
            schema = model_class.model_json_schema()
        except (TypeError, ValueError) as e:
            logger.error(f"Cannot build a schema for {model_class.__name__}: {e}")
            return False
        return isinstance(schema.get("properties"), dict)
