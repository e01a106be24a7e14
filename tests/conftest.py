"""
Pytest configuration and fixtures
"""
import os
import sys
import pytest
from datetime import datetime, timezone
from typing import Generator, AsyncGenerator
from unittest.mock import MagicMock, patch

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fastapi.testclient import TestClient
from httpx import AsyncClient, ASGITransport
from kubernetes import client as k8s
from kubernetes.client.rest import ApiException

from core.kubernetes import KubeClients, get_kube


# ============================================
# Fake cluster
# ============================================

def _name_of(body):
    if isinstance(body, dict):
        return body["metadata"]["name"]
    return body.metadata.name


class FakeCluster:
    """Kubernetes API 를 메모리 dict 로 흉내내는 테스트용 클러스터

    - 없는 오브젝트 조회/삭제: ApiException(404)
    - 이미 있는 오브젝트 생성: ApiException(409)
    - 모든 API 메서드는 MagicMock 이라 호출 기록을 검사할 수 있다
    """

    def __init__(self):
        self.nodes = []
        self.pods = []
        self.namespaces = set()
        self.services = {}
        self.deployments = {}
        self.statefulsets = {}
        self.pvcs = {}
        self.ingresses = {}
        self.events = {}
        self.pod_metrics = {"items": []}
        self.calls = []

        core_v1 = MagicMock(name="core_v1")
        apps_v1 = MagicMock(name="apps_v1")
        networking_v1 = MagicMock(name="networking_v1")
        custom = MagicMock(name="custom")

        core_v1.list_node.side_effect = lambda **kw: MagicMock(items=list(self.nodes))
        core_v1.list_pod_for_all_namespaces.side_effect = lambda **kw: MagicMock(items=list(self.pods))
        core_v1.list_namespaced_pod.side_effect = self._list_namespaced_pod
        core_v1.list_namespace.side_effect = lambda **kw: MagicMock(items=[])
        core_v1.create_namespace.side_effect = self._create_namespace
        core_v1.list_namespaced_event.side_effect = self._list_events
        core_v1.read_namespaced_pod_log.side_effect = lambda name, ns, **kw: "line-1\nline-2\n"

        self._bind(core_v1, "service", self.services)
        self._bind(core_v1, "persistent_volume_claim", self.pvcs)
        self._bind(apps_v1, "deployment", self.deployments)
        self._bind(apps_v1, "stateful_set", self.statefulsets)

        networking_v1.read_namespaced_ingress.side_effect = self._reader(self.ingresses)
        networking_v1.replace_namespaced_ingress.side_effect = self._replace_ingress

        custom.list_namespaced_custom_object.side_effect = lambda **kw: self.pod_metrics

        self.kube = KubeClients(core_v1, apps_v1, networking_v1, custom)

    # --------------------------------------------

    @staticmethod
    def _not_found():
        return ApiException(status=404, reason="Not Found")

    def _reader(self, store):
        def read(name, namespace, **kwargs):
            if (namespace, name) not in store:
                raise self._not_found()
            return store[(namespace, name)]
        return read

    def _bind(self, api, kind, store):
        def create(namespace, body, **kwargs):
            key = (namespace, _name_of(body))
            if key in store:
                raise ApiException(status=409, reason="AlreadyExists")
            store[key] = body
            self.calls.append(("create", kind, key[1]))
            return body

        def delete(name, namespace, **kwargs):
            if (namespace, name) not in store:
                raise self._not_found()
            del store[(namespace, name)]
            self.calls.append(("delete", kind, name))

        getattr(api, f"read_namespaced_{kind}").side_effect = self._reader(store)
        getattr(api, f"create_namespaced_{kind}").side_effect = create
        getattr(api, f"delete_namespaced_{kind}").side_effect = delete

    def _create_namespace(self, body, **kwargs):
        name = _name_of(body)
        if name in self.namespaces:
            raise ApiException(status=409, reason="AlreadyExists")
        self.namespaces.add(name)
        self.calls.append(("create", "namespace", name))

    def _list_namespaced_pod(self, namespace, label_selector=None, **kwargs):
        pods = [p for p in self.pods if p.metadata.namespace == namespace]
        if label_selector:
            wanted = dict(part.split("=", 1) for part in label_selector.split(","))
            pods = [
                p for p in pods
                if all((p.metadata.labels or {}).get(k) == v for k, v in wanted.items())
            ]
        return MagicMock(items=pods)

    def _list_events(self, namespace, field_selector=None, **kwargs):
        pod_name = (field_selector or "").split("=", 1)[-1]
        return MagicMock(items=self.events.get(pod_name, []))

    def _replace_ingress(self, name, namespace, body, **kwargs):
        self.ingresses[(namespace, name)] = body
        self.calls.append(("replace", "ingress", name))
        return body

    # --------------------------------------------

    def add_ingress(self, namespace, name, host="example.com"):
        self.ingresses[(namespace, name)] = k8s.V1Ingress(
            metadata=k8s.V1ObjectMeta(name=name, namespace=namespace),
            spec=k8s.V1IngressSpec(rules=[
                k8s.V1IngressRule(host=host, http=k8s.V1HTTPIngressRuleValue(paths=[])),
            ]),
        )

    def ingress_paths(self, namespace, name):
        ingress = self.ingresses[(namespace, name)]
        return [p.path for rule in ingress.spec.rules for p in rule.http.paths]

    def count(self, action, kind):
        return sum(1 for a, k, _ in self.calls if a == action and k == kind)


# ============================================
# Object builders
# ============================================

def build_node(name, cpu="8", memory="32Gi", gpu=None, labels=None, provider_id=None, ip="10.0.0.1"):
    allocatable = {"cpu": cpu, "memory": memory}
    if gpu is not None:
        allocatable["nvidia.com/gpu"] = gpu
    return k8s.V1Node(
        metadata=k8s.V1ObjectMeta(name=name, labels=labels or {}),
        spec=k8s.V1NodeSpec(provider_id=provider_id),
        status=k8s.V1NodeStatus(
            allocatable=allocatable,
            addresses=[k8s.V1NodeAddress(address=ip, type="InternalIP")],
        ),
    )


def build_container_status(name="main", ready=True, restarts=0, waiting=None, terminated=None, running=False):
    state = k8s.V1ContainerState(
        waiting=waiting,
        terminated=terminated,
        running=k8s.V1ContainerStateRunning() if running else None,
    )
    return k8s.V1ContainerStatus(
        name=name, image="img", image_id="", ready=ready, restart_count=restarts, state=state,
    )


def build_pod(name, namespace="default", node_name=None, requests=None, app=None, phase="Running",
              container_statuses=None, deleting=False, containers=1):
    specs = [
        k8s.V1Container(
            name=f"c{i}",
            image="img",
            resources=k8s.V1ResourceRequirements(requests=requests or {}),
        )
        for i in range(containers)
    ]
    return k8s.V1Pod(
        metadata=k8s.V1ObjectMeta(
            name=name,
            namespace=namespace,
            labels={"app": app} if app else {},
            creation_timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
            deletion_timestamp=datetime(2024, 1, 2, tzinfo=timezone.utc) if deleting else None,
        ),
        spec=k8s.V1PodSpec(node_name=node_name, containers=specs),
        status=k8s.V1PodStatus(phase=phase, container_statuses=container_statuses, pod_ip="10.1.0.5"),
    )


# ============================================
# App Fixtures
# ============================================

@pytest.fixture(scope="session")
def app():
    """Create FastAPI app for testing"""
    from main import app as fastapi_app
    return fastapi_app


@pytest.fixture
def fake_cluster() -> FakeCluster:
    """In-memory Kubernetes cluster"""
    return FakeCluster()


@pytest.fixture
def fake_kube(fake_cluster) -> KubeClients:
    return fake_cluster.kube


@pytest.fixture
def client(app, fake_kube) -> Generator:
    """Synchronous test client (lifespan uses the fake cluster)"""
    app.dependency_overrides[get_kube] = lambda: fake_kube
    with patch("main.create_k8s_clients", return_value=fake_kube):
        with TestClient(app) as c:
            yield c
    app.dependency_overrides.clear()


@pytest.fixture
async def async_client(app, fake_kube) -> AsyncGenerator:
    """Asynchronous test client"""
    app.dependency_overrides[get_kube] = lambda: fake_kube
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def node_factory():
    return build_node


@pytest.fixture
def pod_factory():
    return build_pod


@pytest.fixture
def status_factory():
    return build_container_status


# ============================================
# Settings Fixtures
# ============================================

@pytest.fixture(autouse=True)
def isolated_settings(tmp_path):
    """Artifact / registry directories under tmp_path and fast recreate polling"""
    from core.config import settings

    overrides = {
        "ARTIFACT_ROOT": str(tmp_path / "artifact"),
        "PLUGIN_ARTIFACT_ROOT": str(tmp_path / "plugins"),
        "PLUGIN_REGISTRY_DIR": str(tmp_path / "registry"),
        "RECREATE_GRACE_SECONDS": 0,
        "RECREATE_POLL_INTERVAL_SECONDS": 0,
        "RECREATE_TIMEOUT_SECONDS": 0.2,
    }
    original = {key: getattr(settings, key) for key in overrides}
    for key, value in overrides.items():
        setattr(settings, key, value)

    yield settings

    for key, value in original.items():
        setattr(settings, key, value)
