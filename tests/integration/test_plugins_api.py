"""
Integration tests for plugin API
"""
import os
import shutil
import zipfile
from unittest.mock import patch

import pytest
import yaml

MANIFEST = {
    "name": "Demo",
    "version": "1.0.0",
    "engine_key": "demo",
    "docker": {
        "frontend": {"image": "registry/demo-web"},
        "backend": {"image": "registry/demo-api"},
    },
}


@pytest.fixture
def bundle(tmp_path):
    path = tmp_path / "demo.zip"
    with zipfile.ZipFile(path, "w") as zf:
        zf.writestr("demo/manifest.yaml", yaml.safe_dump(MANIFEST))
    return str(path)


@pytest.fixture(autouse=True)
def local_download():
    def _copy(url, dest, timeout=None):
        shutil.copyfile(url, dest)
        return dest

    with patch("services.plugin.installer.download_file", side_effect=_copy):
        yield


class TestPluginAPI:
    """Tests for /api/plugin endpoints"""

    def test_install_update_remove(self, client, fake_cluster, bundle):
        """Test full plugin lifecycle"""
        fake_cluster.add_ingress("plugin", "aistudio-ingress")

        response = client.post("/api/plugin/install/demo", json={"zipUrl": bundle, "releaseId": 1})
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["engineKey"] == "demo"
        assert data["frontendUrl"] == "demo-frontend.plugin.svc.cluster.local"

        registry = client.get("/api/plugin/registry").json()["data"]
        assert [r["identifier"] for r in registry] == ["demo"]

        response = client.put("/api/plugin/install/demo", json={"zipUrl": bundle, "releaseId": 2})
        assert response.status_code == 200
        assert response.json()["data"]["releaseId"] == 2

        response = client.delete("/api/plugin/install/demo")
        assert response.status_code == 200
        assert fake_cluster.deployments == {}
        assert client.get("/api/plugin/registry").json()["data"] == []

    def test_remove_with_route(self, client, fake_cluster, bundle):
        """Test removal with an explicit route path in the body"""
        fake_cluster.add_ingress("plugin", "aistudio-ingress")
        client.post("/api/plugin/install/demo", json={"zipUrl": bundle, "routePath": "demo-ui"})

        response = client.request("DELETE", "/api/plugin/install/demo", json={"routePath": "demo-ui"})

        assert response.status_code == 200
        assert fake_cluster.ingress_paths("plugin", "aistudio-ingress") == []

    def test_install_rolled_back(self, client, fake_cluster, bundle):
        """Test a failed install maps to an error and leaves nothing behind"""
        response = client.post("/api/plugin/install/demo", json={"zipUrl": bundle})

        assert response.status_code == 500
        assert "ingress" in response.json()["detail"]
        assert fake_cluster.deployments == {}
        assert fake_cluster.services == {}

    def test_install_without_zip(self, client):
        """Test zipUrl is required"""
        response = client.post("/api/plugin/install/demo", json={})
        assert response.status_code == 400

    def test_remove_unknown(self, client):
        """Test removing an unknown plugin"""
        assert client.delete("/api/plugin/install/ghost").status_code == 404

    def test_list_plugins(self, client, fake_cluster, pod_factory):
        """Test plugin workload status"""
        fake_cluster.pods = [pod_factory("demo-frontend-1", namespace="plugin", app="demo-frontend")]
        data = client.get("/api/plugin").json()["data"]
        assert [p["name"] for p in data] == ["demo-frontend-1"]

    def test_registry_skips_unreadable_record(self, client, fake_cluster, bundle, isolated_settings):
        """Test a malformed record file does not fail the registry listing"""
        fake_cluster.add_ingress("plugin", "aistudio-ingress")
        client.post("/api/plugin/install/demo", json={"zipUrl": bundle})
        with open(os.path.join(isolated_settings.PLUGIN_REGISTRY_DIR, "broken.json"), "w") as f:
            f.write("{}")

        response = client.get("/api/plugin/registry")

        assert response.status_code == 200
        assert [r["identifier"] for r in response.json()["data"]] == ["demo"]

    def test_install_registry_identifier_refused(self, client, isolated_settings, bundle):
        """Test an identifier naming the registry directory maps to 400"""
        isolated_settings.PLUGIN_REGISTRY_DIR = os.path.join(isolated_settings.PLUGIN_ARTIFACT_ROOT, "registry")
        response = client.post("/api/plugin/install/registry", json={"zipUrl": bundle})
        assert response.status_code == 400
        assert not os.path.exists(isolated_settings.PLUGIN_REGISTRY_DIR)
