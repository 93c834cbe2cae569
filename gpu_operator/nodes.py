# /*
# Copyright 2026 The Grove Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""GPU node classification, labelling, and node event predicates."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from gpu_operator import logger
from gpu_operator.cluster import ClusterClient
from gpu_operator.constants import (
    COMMON_GPU_LABEL_KEY,
    COMMON_GPU_LABEL_RESET_VALUE,
    COMMON_GPU_LABEL_VALUE,
    GPU_NODE_LABELS,
)
from gpu_operator.errors import ClusterError, NodeLabelError


# ============================================================================
# Classifier
# ============================================================================

def has_common_gpu_label(labels: Mapping[str, str] | None) -> bool:
    """Return True if the node is already marked with ``nvidia.com/gpu.present=true``."""
    if not labels:
        return False
    return labels.get(COMMON_GPU_LABEL_KEY) == COMMON_GPU_LABEL_VALUE


def has_gpu_labels(labels: Mapping[str, str] | None) -> bool:
    """Return True if any NFD label reports an NVIDIA PCI device."""
    if not labels:
        return False
    return any(labels.get(key) == value for key, value in GPU_NODE_LABELS.items())


def gpu_common_label_missing(labels: Mapping[str, str] | None) -> bool:
    return has_gpu_labels(labels) and not has_common_gpu_label(labels)


def gpu_common_label_outdated(labels: Mapping[str, str] | None) -> bool:
    return has_common_gpu_label(labels) and not has_gpu_labels(labels)


# ============================================================================
# Event predicates
# ============================================================================

def node_create_needs_update(name: str, labels: Mapping[str, str] | None) -> bool:
    """Predicate for node create events: only a missing common label matters.

    Args:
        name: Node name, used for logging.
        labels: Labels of the created node.

    Returns:
        True if the event should trigger a reconcile.
    """
    missing = gpu_common_label_missing(labels)
    if missing:
        logger.info("New node %s needs an update, GPU common label missing", name)
    return missing


def node_update_needs_update(name: str, labels: Mapping[str, str] | None) -> bool:
    """Predicate for node update events: the common label is missing or outdated.

    Args:
        name: Node name, used for logging.
        labels: Labels of the node after the update.

    Returns:
        True if the event should trigger a reconcile.
    """
    missing = gpu_common_label_missing(labels)
    outdated = gpu_common_label_outdated(labels)
    if missing or outdated:
        logger.info(
            "Node %s needs an update (gpuCommonLabelMissing=%s, gpuCommonLabelOutdated=%s)",
            name, missing, outdated,
        )
    return missing or outdated


# ============================================================================
# Labeler
# ============================================================================

@dataclass
class LabelResult:
    """Outcome of one labelling pass.

    Attributes:
        labelled: Nodes that gained ``gpu.present=true``.
        reset: Nodes whose ``gpu.present`` was reset to ``false``.
    """

    labelled: list[str] = field(default_factory=list)
    reset: list[str] = field(default_factory=list)


def label_gpu_nodes(client: ClusterClient) -> LabelResult:
    """Reconcile ``nvidia.com/gpu.present`` on every node against NFD evidence.

    Each node is corrected independently; one failed write does not stop
    the remaining nodes from being corrected.

    Args:
        client: Cluster client used to list and update nodes.

    Returns:
        The nodes that were labelled or reset.

    Raises:
        ClusterError: If the node list cannot be read.
        NodeLabelError: If any node update failed, naming each failed node.
    """
    try:
        nodes = client.list_nodes()
    except ClusterError as err:
        raise ClusterError(f"Unable to list nodes to check labels: {err}") from err

    result = LabelResult()
    failures: dict[str, Exception] = {}
    for node in nodes:
        if gpu_common_label_missing(node.labels):
            new_value, bucket = COMMON_GPU_LABEL_VALUE, result.labelled
        elif gpu_common_label_outdated(node.labels):
            new_value, bucket = COMMON_GPU_LABEL_RESET_VALUE, result.reset
        else:
            continue

        node.labels[COMMON_GPU_LABEL_KEY] = new_value
        try:
            client.update_node(node)
        except ClusterError as err:
            logger.error("Unable to label node %s with %s=%s: %s", node.name, COMMON_GPU_LABEL_KEY, new_value, err)
            failures[node.name] = err
            continue
        logger.info("Labelled node %s with %s=%s", node.name, COMMON_GPU_LABEL_KEY, new_value)
        bucket.append(node.name)

    if failures:
        raise NodeLabelError(failures)
    return result
