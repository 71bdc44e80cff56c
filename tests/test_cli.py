"""Tests for the command line interface."""

import yaml
from typer.testing import CliRunner

from hello_operator.cli import app

runner = CliRunner()


def test_render_pod() -> None:
    result = runner.invoke(
        app, ["render-pod", "greeting", "-m", "hello there", "-n", "demo"]
    )

    assert result.exit_code == 0, result.output
    pod = yaml.safe_load(result.output)
    assert pod["metadata"]["name"] == "greeting-pod"
    assert pod["metadata"]["namespace"] == "demo"
    assert pod["spec"]["containers"][0]["args"] == ["echo 'hello there' && sleep 3600"]


def test_render_pod_without_pull_secret() -> None:
    result = runner.invoke(
        app, ["render-pod", "greeting", "-m", "hi", "--pull-secret", ""]
    )

    assert result.exit_code == 0, result.output
    assert "imagePullSecrets" not in yaml.safe_load(result.output)["spec"]


def test_validate_models() -> None:
    result = runner.invoke(app, ["validate-models"])

    assert result.exit_code == 0, result.output
    assert "apps.example.com/v1/HelloWorld" in result.output


def test_generate_crds(tmp_path) -> None:
    output = tmp_path / "crds"

    result = runner.invoke(app, ["generate-crds", "-o", str(output), "--validate"])

    assert result.exit_code == 0, result.output
    assert "CRD validation passed" in result.output
    assert (output / "helloworlds.apps.example.com.yaml").exists()

    result = runner.invoke(app, ["generate-crds", "-o", str(output)])

    assert result.exit_code == 0
    assert "models unchanged" in result.output
