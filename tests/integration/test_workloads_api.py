"""
Integration tests for notebook, model deployment and LLM APIs
"""
import os
from unittest.mock import patch

import pytest

from services import workload


@pytest.fixture
def cluster_ready(fake_cluster, node_factory):
    fake_cluster.nodes = [node_factory("worker-1", cpu="32", memory="128Gi", gpu="4")]
    fake_cluster.add_ingress("lab", "labs")
    return fake_cluster


LAB = {
    "userName": "alice",
    "password": "secret",
    "cpuRequest": "2",
    "memoryRequest": "4Gi",
    "workspaceType": "codeserver",
}


class TestNotebooksAPI:
    """Tests for /api/notebooks endpoints"""

    def test_create(self, client, cluster_ready, isolated_settings):
        """Test notebook creation returns the workspace URL"""
        response = client.post("/api/notebooks", json=LAB)
        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Labspace created successfully"
        assert data["data"]["url"] == f"{isolated_settings.WORKSPACE_DOMAIN}/alice"
        assert ("lab", "alice") in cluster_ready.statefulsets

    def test_create_denied(self, client, cluster_ready):
        """Test admission denial maps to 400"""
        response = client.post("/api/notebooks", json={**LAB, "gpuRequest": "16"})
        assert response.status_code == 400

    def test_create_validation(self, client):
        """Test request validation"""
        response = client.post("/api/notebooks", json={"password": "x"})
        assert response.status_code == 422

    def test_restart(self, client, cluster_ready):
        """Test restart recreates the statefulset"""
        client.post("/api/notebooks", json=LAB)
        cluster_ready.calls.clear()

        response = client.post("/api/notebooks/restart", json=LAB)

        assert response.status_code == 200
        assert cluster_ready.count("delete", "stateful_set") == 1
        assert cluster_ready.count("create", "stateful_set") == 1

    def test_list_and_get(self, client, fake_cluster, pod_factory):
        """Test list and detail"""
        fake_cluster.pods = [pod_factory("alice-0", namespace="lab", app="alice")]

        listed = client.get("/api/notebooks").json()["data"]
        assert [n["name"] for n in listed] == ["alice-0"]

        detail = client.get("/api/notebooks/alice").json()["data"]
        assert detail["podName"] == "alice-0"

    def test_get_missing(self, client):
        """Test missing notebook"""
        assert client.get("/api/notebooks/nobody").status_code == 404

    def test_metrics(self, client, fake_cluster):
        """Test notebook metrics"""
        fake_cluster.pod_metrics = {"items": [{
            "metadata": {"name": "alice-0"},
            "containers": [{"usage": {"cpu": "100m", "memory": "64Mi"}}],
        }]}
        [metrics] = client.get("/api/notebooks/metrics").json()["data"]
        assert metrics == {"podName": "alice-0", "cpuUsage": 100.0, "memoryUsage": 64}

    def test_stop_and_delete(self, client, cluster_ready):
        """Test stop keeps the volume and delete removes it"""
        client.post("/api/notebooks", json=LAB)
        cluster_ready.pvcs[("lab", "jl-alice-0")] = object()

        assert client.delete("/api/notebooks/stop/alice").status_code == 200
        assert ("lab", "jl-alice-0") in cluster_ready.pvcs

        assert client.delete("/api/notebooks/alice").status_code == 200
        assert cluster_ready.pvcs == {}


class TestModelDeploymentAPI:
    """Tests for /api/modeldeployment endpoints"""

    @pytest.fixture
    def artifacts(self, isolated_settings):
        path = os.path.join(isolated_settings.ARTIFACT_ROOT, "ModelRegistry", "alice", "mnist-1")
        os.makedirs(path)
        with open(os.path.join(path, "model.pkl"), "wb") as f:
            f.write(b"m")

    def test_create_and_delete(self, client, cluster_ready, artifacts):
        """Test model deployment create and delete"""
        response = client.post("/api/modeldeployment", json={
            "userName": "alice",
            "deploymentName": "mnist",
            "modelName": "mnist",
            "version": "1",
            "modelartifacts": ["model.pkl"],
        })
        assert response.status_code == 200
        assert response.json()["data"]["inferenceUrl"] == "http://mnist.model"

        assert client.delete("/api/modeldeployment/mnist").status_code == 200
        assert cluster_ready.deployments == {}

    def test_describe(self, client, cluster_ready, artifacts, pod_factory):
        """Test pod events for a deployment"""
        from kubernetes import client as k8s

        client.post("/api/modeldeployment", json={
            "userName": "alice", "deploymentName": "mnist", "modelName": "mnist",
            "version": "1", "modelartifacts": ["model.pkl"],
        })
        cluster_ready.pods = [pod_factory("mnist-abc", namespace="model", app="mnist")]
        cluster_ready.events["mnist-abc"] = [
            k8s.CoreV1Event(
                involved_object=k8s.V1ObjectReference(name="mnist-abc"),
                metadata=k8s.V1ObjectMeta(name="e1"),
                type="Warning", reason="BackOff", message="restarting", count=2,
            )
        ]

        [event] = client.get("/api/modeldeployment/describepod/mnist").json()["data"]
        assert event["reason"] == "BackOff"
        assert event["count"] == 2

    def test_describe_missing(self, client):
        """Test events for an unknown deployment"""
        assert client.get("/api/modeldeployment/describepod/ghost").status_code == 404

    def test_logs(self, client, fake_cluster, pod_factory):
        """Test logs with tailLines"""
        fake_cluster.pods = [pod_factory("mnist-abc", namespace="model", app="mnist")]
        response = client.get("/api/modeldeployment/logs/mnist", params={"tailLines": 10})
        assert response.status_code == 200
        assert response.json()["data"]["lines"] == ["line-1", "line-2"]

    def test_missing_artifacts(self, client, cluster_ready):
        """Test missing registry artifacts map to 500"""
        response = client.post("/api/modeldeployment", json={
            "userName": "alice", "deploymentName": "mnist", "modelName": "mnist",
            "version": "1", "modelartifacts": ["model.pkl"],
        })
        assert response.status_code == 500


class TestLlmAPI:
    """Tests for /api/llm endpoints"""

    def test_backend_types(self, client):
        """Test supported backends"""
        data = client.get("/api/llm/backendtype").json()["data"]
        assert data == {"backendType": ["vllm_model"]}

    def test_default_llms(self, client, isolated_settings):
        """Test default LLM folders"""
        os.makedirs(os.path.join(isolated_settings.ARTIFACT_ROOT, "pvc-llm", "llama"))
        assert client.get("/api/llm").json()["data"] == ["llama"]

    def test_default_llms_missing_volume(self, client):
        """Test missing shared volume"""
        assert client.get("/api/llm").status_code == 400

    def test_create_and_delete(self, client, cluster_ready):
        """Test LLM create and delete"""
        response = client.post("/api/llm", json={"deploymentName": "chat", "modelName": "llama"})
        assert response.status_code == 200
        assert response.json()["data"]["inferenceUrl"] == "http://chat.model/v2/models/vllm_model/generate"

        assert client.delete("/api/llm/chat").status_code == 200
        assert ("model", "pvc-llm") in cluster_ready.pvcs

    def test_unsupported_backend(self, client, cluster_ready):
        """Test unsupported backend"""
        response = client.post("/api/llm", json={
            "deploymentName": "chat", "modelName": "llama", "backendType": "tgi",
        })
        assert response.status_code == 400


class TestWorkloadDispatchAPI:
    """Tests that create/delete endpoints go through the workload entry points"""

    @pytest.mark.parametrize("path,kind,body", [
        ("/api/notebooks", workload.KIND_NOTEBOOK, LAB),
        ("/api/llm", workload.KIND_LLM, {"deploymentName": "chat", "modelName": "llama"}),
    ])
    def test_create(self, client, cluster_ready, path, kind, body):
        """Test create endpoints dispatch by workload kind"""
        with patch("services.workload.create_workload", wraps=workload.create_workload) as create:
            assert client.post(path, json=body).status_code == 200
        assert create.call_args.args[1] == kind

    @pytest.mark.parametrize("path,kind,identity", [
        ("/api/notebooks/alice", workload.KIND_NOTEBOOK, "alice"),
        ("/api/modeldeployment/mnist", workload.KIND_MODEL, "mnist"),
        ("/api/llm/chat", workload.KIND_LLM, "chat"),
    ])
    def test_delete(self, client, cluster_ready, path, kind, identity):
        """Test delete endpoints dispatch by workload kind"""
        with patch("services.workload.delete_workload", wraps=workload.delete_workload) as delete:
            assert client.delete(path).status_code == 200
        delete.assert_called_once()
        assert delete.call_args.args[1:] == (kind, identity)
