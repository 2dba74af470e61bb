# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Cross-object consistency checks of rendered or hand written manifests."""

import dataclasses
import logging
import typing
from pathlib import Path

import manifests
from state import READ_WRITE_MANY, READ_WRITE_ONCE
from status import Finding, Severity

logger = logging.getLogger(__name__)

HELM_VALUES_KIND = "HelmValues"
SCALABLE_KINDS = ("StatefulSet", "Deployment")

Document = typing.Mapping[str, typing.Any]


def _is_integer(value: typing.Any) -> bool:
    """Check a replica setting is an integer.

    Args:
        value: The loaded YAML value.

    Returns:
        True for integers, False for anything else including booleans.
    """
    return isinstance(value, int) and not isinstance(value, bool)


def _name(document: Document) -> str:
    """Return the object name.

    Args:
        document: The Kubernetes object.

    Returns:
        The metadata name, empty if missing.
    """
    return str((document.get("metadata") or {}).get("name") or "")


def _is_helm_values(document: Document) -> bool:
    """Tell chart values apart from Kubernetes objects.

    Args:
        document: The loaded YAML document.

    Returns:
        True if the document looks like Jenkins chart values.
    """
    return "kind" not in document and ("controller" in document or "persistence" in document)


def _check_identity(documents: typing.Iterable[Document]) -> typing.Iterator[Finding]:
    """Report objects that cannot be identified.

    Args:
        documents: The Kubernetes objects.

    Yields:
        Errors for objects missing a kind or a name.
    """
    for document in documents:
        if not document.get("kind"):
            yield Finding(Severity.ERROR, "Unknown", _name(document), "Object has no kind.")
        elif not _name(document):
            yield Finding(Severity.ERROR, document["kind"], "", "Object has no metadata.name.")


def _check_autoscalers(
    autoscalers: typing.Iterable[Document], workloads: typing.Mapping[tuple[str, str], Document]
) -> typing.Iterator[Finding]:
    """Check autoscaler bounds and the replicas of their targets.

    Args:
        autoscalers: The HorizontalPodAutoscaler objects.
        workloads: Scalable workloads keyed by kind and name.

    Yields:
        Findings for inconsistent bounds.
    """
    for hpa in autoscalers:
        name = _name(hpa)
        spec = hpa.get("spec") or {}
        # minReplicas defaults to 1 in the autoscaling/v2 schema
        min_replicas = spec.get("minReplicas", 1)
        max_replicas = spec.get("maxReplicas")
        if max_replicas is None:
            yield Finding(Severity.ERROR, "HorizontalPodAutoscaler", name, "maxReplicas is unset.")
            continue
        invalid = [
            field
            for field, value in (("minReplicas", min_replicas), ("maxReplicas", max_replicas))
            if not _is_integer(value)
        ]
        for field in invalid:
            yield Finding(
                Severity.ERROR, "HorizontalPodAutoscaler", name, f"{field} must be an integer."
            )
        if invalid:
            continue
        if min_replicas < 1:
            yield Finding(
                Severity.ERROR,
                "HorizontalPodAutoscaler",
                name,
                f"minReplicas ({min_replicas}) must be at least 1.",
            )
        if min_replicas > max_replicas:
            yield Finding(
                Severity.ERROR,
                "HorizontalPodAutoscaler",
                name,
                f"minReplicas ({min_replicas}) exceeds maxReplicas ({max_replicas}).",
            )
            continue
        target = spec.get("scaleTargetRef") or {}
        workload = workloads.get((target.get("kind", ""), target.get("name", "")))
        if not workload:
            continue
        replicas = (workload.get("spec") or {}).get("replicas", 1)
        if not _is_integer(replicas):
            yield Finding(
                Severity.ERROR, target["kind"], target["name"], "replicas must be an integer."
            )
            continue
        if not min_replicas <= replicas <= max_replicas:
            yield Finding(
                Severity.ERROR,
                "HorizontalPodAutoscaler",
                name,
                f"{target['kind']} {target['name']} runs {replicas} replicas, outside of "
                f"[{min_replicas}, {max_replicas}].",
            )


def _check_ingresses(ingresses: typing.Iterable[Document]) -> typing.Iterator[Finding]:
    """Check every routed host is covered by the declared TLS entries.

    Args:
        ingresses: The Ingress objects.

    Yields:
        Findings for hosts served without a matching certificate.
    """
    for ingress in ingresses:
        name = _name(ingress)
        spec = ingress.get("spec") or {}
        tls = spec.get("tls") or []
        rule_hosts = [rule["host"] for rule in spec.get("rules") or [] if rule.get("host")]
        for entry in tls:
            if not entry.get("secretName"):
                yield Finding(
                    Severity.ERROR,
                    "Ingress",
                    name,
                    f"TLS entry for {', '.join(entry.get('hosts') or [])} has no secretName.",
                )
        if not tls:
            for host in rule_hosts:
                yield Finding(Severity.WARNING, "Ingress", name, f"{host} is served without TLS.")
            continue
        tls_hosts = {host for entry in tls for host in entry.get("hosts") or []}
        for host in rule_hosts:
            if host not in tls_hosts:
                yield Finding(
                    Severity.ERROR, "Ingress", name, f"{host} is not listed in the TLS hosts."
                )


def _check_claims(
    claims: typing.Iterable[Document], volumes: typing.Mapping[str, Document]
) -> typing.Iterator[Finding]:
    """Check claims agree with the volumes they bind.

    Args:
        claims: The PersistentVolumeClaim objects.
        volumes: PersistentVolume objects keyed by name.

    Yields:
        Findings for mismatched storage classes and access modes.
    """
    for claim in claims:
        name = _name(claim)
        spec = claim.get("spec") or {}
        volume_name = spec.get("volumeName")
        if not volume_name:
            continue
        volume = volumes.get(volume_name)
        if not volume:
            yield Finding(
                Severity.WARNING,
                "PersistentVolumeClaim",
                name,
                f"Bound volume {volume_name} is not part of the checked manifests.",
            )
            continue
        volume_spec = volume.get("spec") or {}
        if spec.get("storageClassName") != volume_spec.get("storageClassName"):
            yield Finding(
                Severity.ERROR,
                "PersistentVolumeClaim",
                name,
                f"storageClassName {spec.get('storageClassName')!r} does not match volume "
                f"{volume_name} ({volume_spec.get('storageClassName')!r}).",
            )
        missing_modes = set(spec.get("accessModes") or []) - set(
            volume_spec.get("accessModes") or []
        )
        if missing_modes:
            yield Finding(
                Severity.ERROR,
                "PersistentVolumeClaim",
                name,
                f"Volume {volume_name} does not offer {', '.join(sorted(missing_modes))}.",
            )


def _check_values(values: typing.Iterable[Document]) -> typing.Iterator[Finding]:
    """Check chart values for settings the chart cannot honour.

    Args:
        values: The chart values documents.

    Yields:
        Findings for contradictory replica settings.
    """
    for document in values:
        controller = document.get("controller") or {}
        replica_count = controller.get("replicaCount", 1)
        if not _is_integer(replica_count):
            yield Finding(
                Severity.ERROR,
                HELM_VALUES_KIND,
                "controller",
                "controller.replicaCount must be an integer.",
            )
            continue
        if replica_count > 1:
            yield Finding(
                Severity.WARNING,
                HELM_VALUES_KIND,
                "controller",
                f"controller.replicaCount is {replica_count} but the chart runs a single "
                "controller replica.",
            )


def _check_shared_storage(
    autoscalers: typing.Sequence[Document],
    claims: typing.Iterable[Document],
    values: typing.Iterable[Document],
) -> typing.Iterator[Finding]:
    """Check scaled controllers can share the Jenkins home volume.

    Args:
        autoscalers: The HorizontalPodAutoscaler objects.
        claims: The PersistentVolumeClaim objects.
        values: The chart values documents.

    Yields:
        Errors for single writer storage used by more than one replica.
    """
    if not autoscalers:
        return
    for claim in claims:
        modes = (claim.get("spec") or {}).get("accessModes") or []
        if READ_WRITE_ONCE in modes and READ_WRITE_MANY not in modes:
            yield Finding(
                Severity.ERROR,
                "PersistentVolumeClaim",
                _name(claim),
                f"{READ_WRITE_ONCE} storage cannot be shared by autoscaled replicas.",
            )
    for document in values:
        if (document.get("persistence") or {}).get("accessMode") == READ_WRITE_ONCE:
            yield Finding(
                Severity.ERROR,
                HELM_VALUES_KIND,
                "persistence",
                f"{READ_WRITE_ONCE} storage cannot be shared by autoscaled replicas.",
            )


def check(documents: typing.Iterable[Document]) -> typing.List[Finding]:
    """Check a bundle of Kubernetes objects and chart values for consistency.

    Args:
        documents: Kubernetes objects and Jenkins chart values.

    Returns:
        The findings, empty if the bundle is consistent.
    """
    values: list[Document] = []
    objects: list[Document] = []
    for document in documents:
        (values if _is_helm_values(document) else objects).append(document)
    by_kind: dict[str, list[Document]] = {}
    for document in objects:
        by_kind.setdefault(str(document.get("kind") or ""), []).append(document)
    workloads = {
        (kind, _name(document)): document
        for kind in SCALABLE_KINDS
        for document in by_kind.get(kind, [])
    }
    volumes = {_name(document): document for document in by_kind.get("PersistentVolume", [])}
    autoscalers = by_kind.get("HorizontalPodAutoscaler", [])
    claims = by_kind.get("PersistentVolumeClaim", [])

    findings = [
        *_check_identity(objects),
        *_check_autoscalers(autoscalers, workloads),
        *_check_ingresses(by_kind.get("Ingress", [])),
        *_check_claims(claims, volumes),
        *_check_values(values),
        *_check_shared_storage(autoscalers, claims, values),
    ]
    logger.info("Checked %d documents, %d findings", len(values) + len(objects), len(findings))
    return findings


def check_files(paths: typing.Iterable[Path]) -> typing.List[Finding]:
    """Check manifests and chart values loaded from files.

    Args:
        paths: Files and directories holding YAML documents.

    Returns:
        The findings, attributed to the file of the offending object where known.
    """
    loaded = manifests.load(paths)
    sources: dict[tuple[str, str], str] = {}
    documents = []
    for path, document in loaded:
        if not isinstance(document, dict):
            logger.warning("Skipping non mapping document in %s", path)
            continue
        documents.append(document)
        kind = HELM_VALUES_KIND if _is_helm_values(document) else str(document.get("kind") or "")
        sources.setdefault((kind, _name(document)), str(path))
        if kind == HELM_VALUES_KIND:
            sources.setdefault((kind, "controller"), str(path))
            sources.setdefault((kind, "persistence"), str(path))
    return [
        dataclasses.replace(finding, source=sources.get((finding.kind, finding.name)))
        for finding in check(documents)
    ]
