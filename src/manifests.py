# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""The ordered bundle of Kubernetes objects applied around the chart."""

import logging
import typing
from pathlib import Path

import yaml

import autoscaler
import backup
import ingress
import storage
from state import State
from types_ import Manifest

logger = logging.getLogger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")


class ManifestError(Exception):
    """Represents a manifest file that cannot be loaded.

    Attributes:
        msg: Explanation of the error.
    """

    def __init__(self, msg: str):
        """Initialize a new instance of the ManifestError exception.

        Args:
            msg: Explanation of the error.
        """
        super().__init__(msg)
        self.msg = msg


def namespace(state: State) -> Manifest:
    """Return the namespace Jenkins is deployed to.

    Args:
        state: The desired Jenkins state.

    Returns:
        The core/v1 Namespace object.
    """
    return {
        "apiVersion": "v1",
        "kind": "Namespace",
        "metadata": {"name": state.namespace, "labels": state.labels},
    }


def render_storage(state: State) -> typing.List[typing.Mapping[str, typing.Any]]:
    """Return the objects the chart depends on, in apply order.

    Args:
        state: The desired Jenkins state.

    Returns:
        The namespace, storage class, volume and claim.
    """
    return [
        namespace(state),
        storage.storage_class(state),
        storage.persistent_volume(state),
        storage.persistent_volume_claim(state),
    ]


def render_addons(state: State) -> typing.List[typing.Mapping[str, typing.Any]]:
    """Return the objects referencing the chart's StatefulSet and Service, in apply order.

    Args:
        state: The desired Jenkins state.

    Returns:
        The configured ingress, autoscaler and backup objects.
    """
    optional = (
        ingress.ingress(state),
        autoscaler.horizontal_pod_autoscaler(state),
        backup.backup_cron_job(state),
    )
    return [document for document in optional if document is not None]


def render_manifests(state: State) -> typing.List[typing.Mapping[str, typing.Any]]:
    """Return every object applied around the chart, in apply order.

    Args:
        state: The desired Jenkins state.

    Returns:
        The Kubernetes objects.
    """
    return [*render_storage(state), *render_addons(state)]


def dump(documents: typing.Iterable[typing.Mapping[str, typing.Any]]) -> str:
    """Serialize objects into a multi-document YAML stream.

    Args:
        documents: The objects to serialize.

    Returns:
        The YAML stream.
    """
    return yaml.safe_dump_all([dict(document) for document in documents], sort_keys=False)


def _iter_files(paths: typing.Iterable[Path]) -> typing.Iterator[Path]:
    """Expand directories into the YAML files they contain.

    Args:
        paths: Files and directories.

    Yields:
        YAML file paths, directory entries in sorted order.
    """
    for path in paths:
        if path.is_dir():
            yield from sorted(
                child for child in path.rglob("*") if child.suffix in YAML_SUFFIXES
            )
            continue
        yield path


def load(paths: typing.Iterable[Path]) -> typing.List[typing.Tuple[Path, typing.Any]]:
    """Load YAML documents from files and directories.

    Args:
        paths: Files and directories holding YAML documents.

    Returns:
        Pairs of source file and document, empty documents skipped.

    Raises:
        ManifestError: if a file cannot be read or parsed.
    """
    documents = []
    for path in _iter_files(paths):
        logger.debug("Loading %s", path)
        try:
            loaded = list(yaml.safe_load_all(path.read_text(encoding="utf-8")))
        except OSError as exc:
            raise ManifestError(f"Cannot read {path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise ManifestError(f"Cannot parse {path}: {exc}") from exc
        documents.extend((path, document) for document in loaded if document is not None)
    return documents
