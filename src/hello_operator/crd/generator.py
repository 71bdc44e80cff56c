"""CRD generation from the registered pydantic models."""

import hashlib
import json
import logging
from pathlib import Path

import yaml

from .registry import CRDRegistry

logger = logging.getLogger(__name__)

PRINTER_COLUMNS = [
    {"name": "Phase", "type": "string", "jsonPath": ".status.phase"},
    {"name": "Pod", "type": "string", "jsonPath": ".status.managedResourceName"},
    {"name": "Age", "type": "date", "jsonPath": ".metadata.creationTimestamp"},
]


class OpenAPIConverter:
    """Convert pydantic schemas to structural OpenAPI v3 schemas for CRDs."""

    @staticmethod
    def convert_schema(pydantic_schema):
        """Convert a pydantic JSON schema to an OpenAPI v3 object schema."""
        defs = pydantic_schema.get("$defs", {})
        openapi_schema = {
            "type": "object",
            "properties": OpenAPIConverter._convert_properties(
                pydantic_schema.get("properties", {}), defs
            ),
        }
        if "required" in pydantic_schema:
            openapi_schema["required"] = pydantic_schema["required"]
        return openapi_schema

    @staticmethod
    def _convert_properties(properties, defs):
        return {
            prop_name: OpenAPIConverter._convert_property(prop_schema, defs)
            for prop_name, prop_schema in properties.items()
        }

    @staticmethod
    def _convert_property(prop_schema, defs):
        """Convert a single property schema."""
        if "$ref" in prop_schema:
            def_name = prop_schema["$ref"].replace("#/$defs/", "")
            resolved = dict(defs.get(def_name, {}))
            if "description" in prop_schema:
                resolved["description"] = prop_schema["description"]
            return OpenAPIConverter._convert_property(resolved, defs)

        # Optional[X] is rendered as anyOf [X, null]
        if "anyOf" in prop_schema:
            variants = [v for v in prop_schema["anyOf"] if v.get("type") != "null"]
            if len(variants) == 1:
                converted = OpenAPIConverter._convert_property(variants[0], defs)
                if "description" in prop_schema:
                    converted["description"] = prop_schema["description"]
                return converted

        prop_type = prop_schema.get("type")
        if prop_type == "array":
            converted = {"type": "array"}
            if "items" in prop_schema:
                converted["items"] = OpenAPIConverter._convert_property(
                    prop_schema["items"], defs
                )
            return converted

        if prop_type == "object" and "properties" in prop_schema:
            converted = {
                "type": "object",
                "properties": OpenAPIConverter._convert_properties(
                    prop_schema["properties"], defs
                ),
            }
            if "required" in prop_schema:
                converted["required"] = prop_schema["required"]
            return converted

        if prop_type == "object" or not prop_type:
            return {"type": "object", "x-kubernetes-preserve-unknown-fields": True}

        result = {"type": prop_type}
        for key in ("description", "default", "enum", "format"):
            if key in prop_schema:
                result[key] = prop_schema[key]
        return result


class CRDManager:
    """Generates and applies CRDs for the registered models."""

    def __init__(self, output_dir=None, registry=None):
        self.output_dir = output_dir or Path("crds/generated")
        self.registry = registry or CRDRegistry()
        self.converter = OpenAPIConverter()

    def generate_all_crds(self, force=False):
        """Write CRD YAML files if the models changed.

        Returns:
            bool: True if CRDs were generated/updated, False if no changes needed
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)

        current_hash = self._calculate_models_hash()
        hash_file = self.output_dir / ".models_hash"
        if not force and hash_file.exists():
            if hash_file.read_text().strip() == current_hash:
                logger.info("CRD models unchanged, skipping generation")
                return False

        crds = self.get_crds_as_dict()
        if not crds:
            logger.warning("No CRD models found to generate")
            return False

        generated_files = []
        for crd_name, crd_def in crds.items():
            filename = f"{crd_name}.yaml"
            with open(self.output_dir / filename, "w") as f:
                yaml.safe_dump(crd_def, f, default_flow_style=False, sort_keys=False)
            generated_files.append(filename)
            logger.info(f"Generated CRD: {filename}")

        self._generate_kustomization(generated_files)
        hash_file.write_text(current_hash)

        logger.info(f"Generated {len(generated_files)} CRD files")
        return True

    def _status_schema(self, resource):
        if resource.status_model is None:
            return {"type": "object", "x-kubernetes-preserve-unknown-fields": True}
        return self.converter.convert_schema(resource.status_model.model_json_schema())

    def generate_crd_definition(self, resource):
        """Build the CustomResourceDefinition for a registered resource."""
        try:
            spec_schema = self.converter.convert_schema(
                resource.spec_model.model_json_schema()
            )
        except (TypeError, ValueError) as e:
            raise ValueError(f"Cannot build the spec schema of {resource.key}: {e}") from e

        version = {
            "name": resource.version,
            "served": True,
            "storage": True,
            "schema": {
                "openAPIV3Schema": {
                    "type": "object",
                    "properties": {
                        "spec": spec_schema,
                        "status": self._status_schema(resource),
                    },
                    "required": ["spec"],
                }
            },
            "subresources": {"status": {}},
            "additionalPrinterColumns": PRINTER_COLUMNS,
        }
        return {
            "apiVersion": "apiextensions.k8s.io/v1",
            "kind": "CustomResourceDefinition",
            "metadata": {"name": resource.crd_name},
            "spec": {
                "group": resource.group,
                "scope": resource.scope,
                "names": {
                    "plural": resource.plural,
                    "singular": resource.singular,
                    "kind": resource.kind,
                    "shortNames": [resource.singular[:3]],
                },
                "versions": [version],
            },
        }

    def get_crds_as_dict(self):
        """Generate all CRDs in memory, keyed by CRD name."""
        self.registry.discover_models()
        return {
            resource.crd_name: self.generate_crd_definition(resource)
            for resource in self.registry.resources()
        }

    def _generate_kustomization(self, filenames):
        kustomization = {
            "apiVersion": "kustomize.config.k8s.io/v1beta1",
            "kind": "Kustomization",
            "resources": sorted(filenames),
        }
        with open(self.output_dir / "kustomization.yaml", "w") as f:
            yaml.safe_dump(kustomization, f, default_flow_style=False)
        logger.info("Generated kustomization.yaml")

    def _calculate_models_hash(self):
        """Hash of all CRD definitions for change detection."""
        crds = self.get_crds_as_dict()
        crd_json = json.dumps(crds, sort_keys=True)
        return hashlib.sha256(crd_json.encode()).hexdigest()

    def apply_crds_to_cluster(self, api_client=None):
        """Create or replace the CRDs on the cluster.

        Returns:
            bool: True if at least one CRD was applied
        """
        from kubernetes import client
        from kubernetes.client.exceptions import ApiException

        api = api_client or client.ApiextensionsV1Api()
        applied_count = 0
        for crd_name, crd_def in self.get_crds_as_dict().items():
            try:
                try:
                    existing = api.read_custom_resource_definition(crd_name)
                except ApiException as e:
                    if e.status != 404:
                        raise
                    api.create_custom_resource_definition(body=crd_def)
                    logger.info(f"Created CRD: {crd_name}")
                else:
                    crd_def["metadata"]["resourceVersion"] = (
                        existing.metadata.resource_version
                    )
                    api.replace_custom_resource_definition(name=crd_name, body=crd_def)
                    logger.info(f"Updated CRD: {crd_name}")
                applied_count += 1
            except ApiException as e:
                logger.error(f"Failed to apply CRD {crd_name}: {e}")

        logger.info(f"Applied {applied_count} CRDs to cluster")
        return applied_count > 0

    def validate_generated_crds(self):
        """Validate that generated CRD files are well-formed CRDs."""
        if not self.output_dir.exists():
            logger.error("CRD output directory does not exist")
            return False

        crd_files = [
            f for f in self.output_dir.glob("*.yaml") if f.name != "kustomization.yaml"
        ]
        if not crd_files:
            logger.error("No CRD files found to validate")
            return False

        valid_count = 0
        for crd_file in crd_files:
            with open(crd_file) as f:
                crd_def = yaml.safe_load(f)

            if not isinstance(crd_def, dict):
                logger.error(f"Invalid YAML in {crd_file}")
                continue
            if not all(k in crd_def for k in ("apiVersion", "kind", "metadata", "spec")):
                logger.error(f"Missing required fields in {crd_file}")
                continue
            if crd_def["kind"] != "CustomResourceDefinition":
                logger.error(f"Not a CRD: {crd_file}")
                continue
            valid_count += 1

        logger.info(f"Validated {valid_count}/{len(crd_files)} CRD files")
        return valid_count == len(crd_files)
