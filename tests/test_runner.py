"""Unit tests for the polling work queue."""

import threading

import pytest

from gpu_operator.config import OperatorConfig
from gpu_operator.controller import ReconcileResult
from gpu_operator.errors import ClusterError, ManifestError
from gpu_operator.models import NamespacedName
from gpu_operator.runner import Runner

POLICY_KEY = NamespacedName("cluster-policy")
NFD_GPU = {"feature.node.kubernetes.io/pci-10de.present": "true"}


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class StubReconciler:
    """Returns (or raises) scripted outcomes and records requests."""

    def __init__(self, *outcomes) -> None:
        self.outcomes = list(outcomes)
        self.requests: list[NamespacedName] = []

    def reconcile(self, request):
        self.requests.append(request)
        outcome = self.outcomes.pop(0) if self.outcomes else ReconcileResult()
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def clock():
    return FakeClock()


def _runner(fake_client, reconciler, clock):
    cfg = OperatorConfig(resync_period_seconds=30, poll_interval_seconds=1)
    return Runner(fake_client, reconciler, cfg, clock=clock)


class TestQueue:
    """Test scheduling of requests."""

    def test_earlier_schedule_wins(self, fake_client, clock):
        runner = _runner(fake_client, StubReconciler(), clock)

        runner.enqueue(POLICY_KEY, 10)
        runner.enqueue(POLICY_KEY, 3)
        runner.enqueue(POLICY_KEY, 8)

        assert runner.pending == {POLICY_KEY: 3}

    def test_requeue_delay_is_honoured(self, fake_client, clock):
        fake_client.add_policy("cluster-policy")
        reconciler = StubReconciler(ReconcileResult(requeue_after=5))
        runner = _runner(fake_client, reconciler, clock)

        runner.poll_once()
        clock.now = 4
        runner.poll_once()
        assert reconciler.requests == [POLICY_KEY]

        clock.now = 5
        runner.poll_once()
        assert reconciler.requests == [POLICY_KEY, POLICY_KEY]

    def test_exception_requeues_immediately(self, fake_client, clock):
        fake_client.add_policy("cluster-policy")
        runner = _runner(fake_client, StubReconciler(ClusterError("apiserver unavailable")), clock)

        runner.poll_once()

        assert runner.pending == {POLICY_KEY: 0}

    def test_manifest_error_is_fatal(self, fake_client, clock):
        fake_client.add_policy("cluster-policy")
        runner = _runner(fake_client, StubReconciler(ManifestError("Invalid DaemonSet manifest")), clock)

        with pytest.raises(ManifestError):
            runner.poll_once()


class TestEventSources:
    """Test how policy and node changes become requests."""

    def test_unchanged_policy_waits_for_resync(self, fake_client, clock):
        fake_client.add_policy("cluster-policy")
        reconciler = StubReconciler()
        runner = _runner(fake_client, reconciler, clock)

        runner.poll_once()
        clock.now = 10
        runner.poll_once()
        assert len(reconciler.requests) == 1

        clock.now = 30
        runner.poll_once()
        assert len(reconciler.requests) == 2

    def test_policy_change_is_enqueued(self, fake_client, clock):
        policy = fake_client.add_policy("cluster-policy")
        reconciler = StubReconciler()
        runner = _runner(fake_client, reconciler, clock)
        runner.poll_once()

        policy.resource_version = "2"
        clock.now = 1
        runner.poll_once()

        assert len(reconciler.requests) == 2

    def test_new_gpu_node_triggers_reconcile(self, fake_client, clock):
        fake_client.add_policy("cluster-policy")
        reconciler = StubReconciler()
        runner = _runner(fake_client, reconciler, clock)
        runner.poll_once()

        fake_client.add_node("gpu-0", NFD_GPU)
        clock.now = 1
        runner.poll_once()

        assert reconciler.requests == [POLICY_KEY, POLICY_KEY]

    def test_stale_label_update_triggers_reconcile(self, fake_client, clock):
        fake_client.add_policy("cluster-policy")
        node = fake_client.add_node("cpu-0", {})
        reconciler = StubReconciler()
        runner = _runner(fake_client, reconciler, clock)
        runner.poll_once()

        node.labels = {"nvidia.com/gpu.present": "true"}
        clock.now = 1
        runner.poll_once()

        assert len(reconciler.requests) == 2

    def test_irrelevant_node_change_is_ignored(self, fake_client, clock):
        fake_client.add_policy("cluster-policy")
        node = fake_client.add_node("cpu-0", {})
        reconciler = StubReconciler()
        runner = _runner(fake_client, reconciler, clock)
        runner.poll_once()

        node.labels = {"kubernetes.io/os": "linux"}
        fake_client.add_node("cpu-1", {})
        clock.now = 1
        runner.poll_once()

        assert len(reconciler.requests) == 1

    def test_refresh_failure_still_drains_queue(self, fake_client, clock):
        fake_client.list_nodes_error = ClusterError("apiserver unavailable")
        reconciler = StubReconciler()
        runner = _runner(fake_client, reconciler, clock)
        runner.enqueue(POLICY_KEY)

        runner.poll_once()

        assert reconciler.requests == [POLICY_KEY]

    def test_policy_list_failure_still_detects_node_events(self, fake_client, clock):
        fake_client.add_policy("cluster-policy")
        reconciler = StubReconciler()
        runner = _runner(fake_client, reconciler, clock)
        runner.poll_once()

        fake_client.list_policies_error = ClusterError("apiserver unavailable")
        fake_client.add_node("gpu-0", NFD_GPU)
        clock.now = 1
        runner.poll_once()

        assert reconciler.requests == [POLICY_KEY, POLICY_KEY]


def test_run_stops_when_event_is_set(fake_client, clock):
    stop = threading.Event()
    stop.set()
    reconciler = StubReconciler()
    runner = _runner(fake_client, reconciler, clock)

    runner.run(stop)

    assert reconciler.requests == []
