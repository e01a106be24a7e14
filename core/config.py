"""
Application configuration settings
"""
import os
from typing import List


class Settings:
    """Application settings"""

    # App
    APP_TITLE: str = "Workload Control Plane API"
    APP_VERSION: str = "1.0.0"
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")

    # CORS
    CORS_ORIGINS: List[str] = ["*"]
    CORS_CREDENTIALS: bool = True
    CORS_METHODS: List[str] = ["*"]
    CORS_HEADERS: List[str] = ["*"]

    # Namespaces / Ingress
    LAB_NAMESPACE: str = os.environ.get("LAB_NAMESPACE", "lab")
    MODEL_NAMESPACE: str = os.environ.get("MODEL_NAMESPACE", "model")
    PLUGIN_NAMESPACE: str = os.environ.get("PLUGIN_NAMESPACE", "plugin")
    LAB_INGRESS: str = os.environ.get("LAB_INGRESS", "labs")
    PLUGIN_INGRESS: str = os.environ.get("PLUGIN_INGRESS", "aistudio-ingress")

    # Storage / GPU
    STORAGE_CLASS: str = os.environ.get("STORAGE_CLASS", "nfs-csi-model")
    GPU_RESOURCE_NAME: str = "nvidia.com/gpu"
    SHM_SIZE_LIMIT: str = "40Gi"

    # Images
    JUPYTERLAB_IMAGE: str = os.environ.get("JUPYTERLAB_IMAGE", "jupyter/base-notebook:latest")
    CODESERVER_IMAGE: str = os.environ.get("CODESERVER_IMAGE", "codercom/code-server:latest")
    AGENT_CODESERVER_IMAGE: str = os.environ.get("AGENT_CODESERVER_IMAGE", "codercom/code-server:latest")
    ADK_UI_IMAGE: str = os.environ.get("ADK_UI_IMAGE", "adk-web-ui:latest")
    MODEL_DEPLOYMENT_IMAGE: str = os.environ.get(
        "MODEL_DEPLOYMENT_IMAGE", "9861531522/custom-script-deployment:v1.1"
    )
    LLM_DEPLOYMENT_IMAGE: str = os.environ.get(
        "LLM_DEPLOYMENT_IMAGE", "9861531522/general-llm-deployment:v0.4"
    )
    WORKSPACE_DOMAIN: str = os.environ.get("WORKSPACE_DOMAIN", "https://devlabs.fuse.ai")

    # Paths
    ARTIFACT_ROOT: str = os.environ.get("ARTIFACT_ROOT", "/app/artifact")
    PLUGIN_ARTIFACT_ROOT: str = os.environ.get("PLUGIN_ARTIFACT_ROOT", "artifacts/plugins")
    PLUGIN_REGISTRY_DIR: str = os.environ.get("PLUGIN_REGISTRY_DIR", "artifacts/registry")

    # Recreate (delete -> poll -> create)
    RECREATE_GRACE_SECONDS: float = float(os.environ.get("RECREATE_GRACE_SECONDS", "2"))
    RECREATE_POLL_INTERVAL_SECONDS: float = float(os.environ.get("RECREATE_POLL_INTERVAL_SECONDS", "1"))
    RECREATE_TIMEOUT_SECONDS: float = float(os.environ.get("RECREATE_TIMEOUT_SECONDS", "300"))

    # Outbound HTTP
    HTTP_TIMEOUT_SECONDS: float = float(os.environ.get("HTTP_TIMEOUT_SECONDS", "30"))
    DOWNLOAD_TIMEOUT_SECONDS: float = float(os.environ.get("DOWNLOAD_TIMEOUT_SECONDS", "60"))

    # Logs
    DEFAULT_LOG_TAIL_LINES: int = 200


settings = Settings()
