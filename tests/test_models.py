"""Tests for the HelloWorld resource model."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from hello_operator.controller.conditions import set_condition
from hello_operator.models.helloworld import (
    HelloWorld,
    HelloWorldSpec,
    HelloWorldStatus,
    NamespacedName,
    Phase,
)

from .fakes import helloworld_object

T0 = datetime(2025, 1, 1, tzinfo=timezone.utc)


def test_from_object_without_status() -> None:
    obj = helloworld_object(uid="uid-1", generation=3)
    obj["status"] = None

    hw = HelloWorld.from_object(obj)

    assert hw.status.phase is None
    assert hw.status.conditions == ()
    assert hw.key == NamespacedName("demo", "greeting")
    assert str(hw.key) == "demo/greeting"
    assert not hw.status_is_current()


def test_spec_rejects_unknown_fields() -> None:
    with pytest.raises(ValidationError):
        HelloWorldSpec(message="hi", replicas=3)
    with pytest.raises(ValidationError):
        HelloWorldSpec()


def test_status_body() -> None:
    hw = HelloWorld.from_object(
        helloworld_object(uid="uid-1", generation=2, resourceVersion="7")
    )
    status = HelloWorldStatus(
        phase=Phase.RUNNING,
        managedResourceName="greeting-pod",
        observedGeneration=2,
        conditions=set_condition((), "Ready", "True", "PodRunning", "running", 2, now=T0),
    )

    body = hw.status_body(status)

    assert body["apiVersion"] == "apps.example.com/v1"
    assert body["kind"] == "HelloWorld"
    assert body["metadata"]["resourceVersion"] == "7"
    assert body["spec"] == {"message": "hi"}
    assert body["status"]["phase"] == "Running"
    assert body["status"]["conditions"][0]["lastTransitionTime"] == "2025-01-01T00:00:00Z"
    assert "lastUpdateTime" not in body["status"]

    updated = HelloWorld.from_object(body)
    assert updated.status_is_current()
    assert updated.status.conditions[0].lastTransitionTime == T0
