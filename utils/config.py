"""
전역 상수
"""

# 클라우드 벤더별 노드 라벨 키
VENDOR_CONFIGS = {
    "eks": {
        "instance_type_label": "beta.kubernetes.io/instance-type",
        "capacity_type_label": "eks.amazonaws.com/capacityType",
        "node_group_label": "eks.amazonaws.com/nodegroup",
    },
    "gke": {
        "instance_type_label": "node.kubernetes.io/instance-type",
        "capacity_type_label": "cloud.google.com/gke-preemptible",
        "node_group_label": "cloud.google.com/gke-nodepool",
    },
    "aks": {
        "instance_type_label": "node.kubernetes.io/instance-type",
        "capacity_type_label": "kubernetes.azure.com/scalesetpriority",
        "node_group_label": "kubernetes.azure.com/agentpool",
    },
    "minikube": {
        "instance_type_label": "minikube.k8s.io/instance-type",
        "capacity_type_label": "kubernetes.io/os",
        "node_group_label": "minikube.k8s.io/version",
    },
    "generic": {
        "instance_type_label": "node.kubernetes.io/instance-type",
        "capacity_type_label": "node.kubernetes.io/capacity-type",
        "node_group_label": "node.kubernetes.io/nodegroup",
    },
}

# 노드 그룹 라벨 -> 벤더
VENDOR_NODE_LABELS = [
    ("eks.amazonaws.com/nodegroup", "eks"),
    ("cloud.google.com/gke-nodepool", "gke"),
    ("kubernetes.azure.com/agentpool", "aks"),
    ("minikube.k8s.io/version", "minikube"),
]

# providerID prefix -> 벤더
VENDOR_PROVIDER_PREFIXES = [
    ("aws://", "eks"),
    ("gce://", "gke"),
    ("azure://", "aks"),
]

# 워크로드 nodeSelector 키
NODE_SELECTOR_KEY = "type"

# 노트북 (Labspace)
NOTEBOOK_PORT = 8888
ADK_PORT = 9005
NOTEBOOK_SERVICE_PREFIX = "notebook-"
ADK_SERVICE_PREFIX = "adkweb-"
ADK_INGRESS_FRONTEND_SUFFIX = "/adk-ui/"
ADK_INGRESS_BACKEND_SUFFIX = "/adk/"
NOTEBOOK_PVC_PREFIX = "jl-"
NOTEBOOK_PVC_SUFFIX = "-0"
NOTEBOOK_VOLUME_TEMPLATE = "jl"
NOTEBOOK_WORK_DIR = "/home/studio/work"
AIM_RUNS_VOLUME = "aim-runs"
AIM_RUNS_CLAIM = "aim-runs-claim"
AIM_RUNS_MOUNT = "/aim"

LAB_TYPE_JUPYTERLAB = "jupyterlab"
LAB_TYPE_CODESERVER = "codeserver"
AI_TYPE_ML_MODEL = "ML_MODEL_LABSPACE"
AI_TYPE_AGENT = "AGENT_LABSPACE"

# 모델 / LLM 배포
MODEL_PORT = 9000
LLM_PORT = 8000
LLM_SHARED_PVC = "pvc-llm"
SUPPORTED_LLM_BACKENDS = ["vllm_model"]
MODEL_DEPLOYMENT_MOUNT = "/deploy/deployment"
MODEL_DATA_MOUNT = "/deploy/be_ml_data"

# 플러그인
PLUGIN_FRONTEND_PORT = 80
PLUGIN_BACKEND_PORT = 8080
PLUGIN_ROUTE_PREFIX = "/plugins"
