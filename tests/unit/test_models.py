"""
Unit tests for Pydantic models
"""
import pytest
from pydantic import ValidationError

from models.common import api_response
from models.plugin import PluginInstallRequest, PluginManifest, PluginRecord
from models.resources import ResourceAsk
from models.workload import CreateLabRequest, CreateLlmDeploymentRequest, CreateModelDeploymentRequest


class TestWorkloadModels:
    """Tests for workload request models"""

    def test_lab_request_aliases(self):
        """Test camelCase payload parsing"""
        req = CreateLabRequest.model_validate({
            "userName": "alice",
            "password": "pw",
            "cpuRequest": "2",
            "memoryRequest": "4Gi",
            "gpuRequest": "1",
            "workspaceType": "jupyterlab",
            "labspaceType": "AGENT_LABSPACE",
        })
        assert req.username == "alice"
        assert req.cpu_request == "2"
        assert req.gpu_request == "1"
        assert req.labspace_type == "AGENT_LABSPACE"

    def test_lab_request_defaults(self):
        """Test resource defaults"""
        req = CreateLabRequest(username="bob")
        assert req.gpu_request == "0"
        assert req.disk_storage == "10Gi"
        assert req.cpu_limit is None

    def test_lab_request_missing_user(self):
        """Test lab request fails without user name"""
        with pytest.raises(ValidationError):
            CreateLabRequest()

    def test_model_deployment_artifacts_alias(self):
        """Test modelartifacts alias"""
        req = CreateModelDeploymentRequest.model_validate({
            "userName": "alice",
            "deploymentName": "mnist",
            "modelName": "mnist",
            "version": "1",
            "modelartifacts": ["weights", "run.sh"],
        })
        assert req.model_artifacts == ["weights", "run.sh"]

    def test_llm_default_backend(self):
        """Test default LLM backend"""
        req = CreateLlmDeploymentRequest(deployment_name="chat", model_name="llama")
        assert req.backend_type == "vllm_model"


class TestResourceAsk:
    """Tests for ResourceAsk model"""

    def test_defaults(self):
        """Test all dimensions default to zero"""
        ask = ResourceAsk()
        assert (ask.cpu_request, ask.memory_request, ask.gpu_request) == ("0", "0", "0")


class TestPluginModels:
    """Tests for plugin models"""

    def test_manifest_nulls_and_numbers(self):
        """Test YAML nulls fall back to defaults and numbers become strings"""
        manifest = PluginManifest.model_validate({
            "engine_key": "demo",
            "version": 1.2,
            "docker": {"frontend": {"image": "web", "tag": 3}, "backend": None},
            "logo": None,
        })
        assert manifest.version == "1.2"
        assert manifest.docker.frontend.tag == "3"
        assert manifest.docker.backend.image is None
        assert manifest.logo.path is None

    def test_install_request_defaults(self):
        """Test install request defaults"""
        req = PluginInstallRequest.model_validate({"zipUrl": "http://x/bundle.zip"})
        assert req.zip_url == "http://x/bundle.zip"
        assert req.release_id == 0
        assert req.backend_callbacks == {}

    def test_record_serializes_with_aliases(self):
        """Test registry record uses camelCase keys"""
        record = PluginRecord(identifier="demo", engine_key="demo", route_path="demo-ui")
        data = record.model_dump(by_alias=True)
        assert data["engineKey"] == "demo"
        assert data["routePath"] == "demo-ui"


class TestAPIResponse:
    """Tests for the response envelope"""

    def test_ok(self):
        """Test success envelope"""
        assert api_response("done", {"a": 1}) == {
            "message": "done",
            "statusCode": 200,
            "status": True,
            "data": {"a": 1},
        }

    def test_non_200(self):
        """Test status flag follows status code"""
        assert api_response("accepted", status_code=201)["status"] is False
