import sys
from pathlib import Path
from typing import Annotated

import typer
from dotenv import find_dotenv, load_dotenv

load_dotenv(find_dotenv(usecwd=True))

app = typer.Typer(
    help="hello-operator: reconciles HelloWorld resources into pods",
    add_completion=False,
)


@app.command("operator")
def run_operator():
    """Run the Kubernetes operator (connects to cluster)."""
    from hello_operator.main import main

    main()


@app.command("generate-crds")
def generate_crds(
    output: Annotated[
        str, typer.Option("-o", "--output", help="Output directory")
    ] = "crds/generated",
    force: Annotated[bool, typer.Option("--force", help="Force regeneration")] = False,
    validate: Annotated[
        bool, typer.Option("--validate", help="Validate generated CRDs")
    ] = False,
):
    """Generate CRD YAML files from pydantic models."""
    from hello_operator.crd.generator import CRDManager

    output_dir = Path(output)
    manager = CRDManager(output_dir=output_dir)

    try:
        success = manager.generate_all_crds(force=force)
    except (OSError, ValueError) as e:
        typer.echo(f"Failed to generate CRDs: {e}")
        sys.exit(1)

    if not success:
        typer.echo("No CRDs generated (models unchanged)")
        return

    typer.echo(f"CRDs generated successfully in {output_dir}")
    if validate:
        if manager.validate_generated_crds():
            typer.echo("CRD validation passed")
        else:
            typer.echo("CRD validation failed")
            sys.exit(1)


@app.command("validate-models")
def validate_models():
    """Check that every registered model converts to a CRD schema."""
    from hello_operator.crd.generator import CRDManager

    manager = CRDManager()
    try:
        crds = manager.get_crds_as_dict()
    except ValueError as e:
        typer.echo(f"Model validation failed: {e}")
        raise typer.Exit(1)

    invalid = []
    for resource in manager.registry.resources():
        for model in (resource.spec_model, resource.status_model):
            if model is not None and not manager.registry.schema_is_valid(model):
                invalid.append(f"{resource.key}: {model.__name__}")
        typer.echo(f"  - {resource.key} -> {resource.crd_name}")
    if invalid:
        typer.echo(f"Models without an object schema: {', '.join(invalid)}")
        raise typer.Exit(1)
    typer.echo(f"Validated {len(crds)} CRD model(s)")


@app.command("render-pod")
def render_pod(
    name: Annotated[str, typer.Argument(help="HelloWorld name")],
    message: Annotated[str, typer.Option("-m", "--message", help="Message to print")],
    namespace: Annotated[
        str, typer.Option("-n", "--namespace", help="Target namespace")
    ] = "default",
    pull_secret: Annotated[
        str, typer.Option("--pull-secret", help="Image pull secret name")
    ] = "registry-credentials",
):
    """Print the pod manifest the operator would create."""
    from hello_operator.controller.builder import build_desired_pod, serialize_manifest
    from hello_operator.models.helloworld import HelloWorldSpec

    pod = build_desired_pod(
        HelloWorldSpec(message=message), name, namespace, pull_secret or None
    )
    typer.echo(serialize_manifest(pod), nl=False)
