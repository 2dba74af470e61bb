# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Types used to describe rendered Kubernetes objects."""

import typing


class ObjectMeta(typing.TypedDict, total=False):
    """Metadata common to all Kubernetes objects.

    Attrs:
        name: The object name.
        namespace: The namespace of namespaced objects.
        labels: Labels identifying the object.
        annotations: Non-identifying metadata consumed by controllers.
    """

    name: str
    namespace: str
    labels: typing.Dict[str, str]
    annotations: typing.Dict[str, str]


class Manifest(typing.TypedDict, total=False):
    """A Kubernetes object as handed to kubectl apply.

    Attrs:
        apiVersion: The group/version of the object schema.
        kind: The object kind.
        metadata: The object metadata.
        spec: The desired state of the object.
    """

    apiVersion: str
    kind: str
    metadata: ObjectMeta
    spec: typing.Dict[str, typing.Any]
