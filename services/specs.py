"""
워크로드 오브젝트 빌더
컨테이너, 리소스, 볼륨, StatefulSet(노트북), Deployment(모델/LLM) 스펙 생성
"""
from typing import Dict, List, Optional

from kubernetes import client

from core.config import settings
from utils.config import (
    NODE_SELECTOR_KEY,
    NOTEBOOK_VOLUME_TEMPLATE,
    NOTEBOOK_WORK_DIR,
    AIM_RUNS_VOLUME,
    AIM_RUNS_CLAIM,
    AIM_RUNS_MOUNT,
    MODEL_DEPLOYMENT_MOUNT,
    MODEL_DATA_MOUNT,
)


def env_vars(values: Dict[str, object]) -> List[client.V1EnvVar]:
    """dict -> V1EnvVar 목록 (값은 문자열로 변환)"""
    return [
        client.V1EnvVar(name=name, value="" if value is None else str(value))
        for name, value in values.items()
    ]


def build_resources(cpu_request: str, memory_request: str,
                    cpu_limit: Optional[str] = None,
                    memory_limit: Optional[str] = None) -> client.V1ResourceRequirements:
    """requests / limits 설정. limit 이 없으면 limits 에서 생략"""
    limits = {}
    if cpu_limit:
        limits["cpu"] = cpu_limit
    if memory_limit:
        limits["memory"] = memory_limit
    return client.V1ResourceRequirements(
        requests={"cpu": cpu_request, "memory": memory_request},
        limits=limits,
    )


def configure_gpu(pod_spec: client.V1PodSpec, gpu: int) -> None:
    """모든 컨테이너의 requests / limits 에 GPU 추가"""
    if gpu <= 0:
        return
    for container in pod_spec.containers:
        if container.resources is None:
            container.resources = client.V1ResourceRequirements()
        requests = dict(container.resources.requests or {})
        limits = dict(container.resources.limits or {})
        requests[settings.GPU_RESOURCE_NAME] = str(gpu)
        limits[settings.GPU_RESOURCE_NAME] = str(gpu)
        container.resources.requests = requests
        container.resources.limits = limits


def build_container(name: str, image: str, port: int,
                    volume_mounts: Optional[List[client.V1VolumeMount]] = None,
                    env: Optional[List[client.V1EnvVar]] = None,
                    resources: Optional[client.V1ResourceRequirements] = None) -> client.V1Container:
    return client.V1Container(
        name=name,
        image=image,
        image_pull_policy="IfNotPresent",
        ports=[client.V1ContainerPort(container_port=port)],
        volume_mounts=volume_mounts or [],
        env=env or [],
        resources=resources,
    )


def _node_selector(selector: Optional[str]) -> Optional[Dict[str, str]]:
    return {NODE_SELECTOR_KEY: selector} if selector else None


# ============================================
# 노트북 StatefulSet
# ============================================

def notebook_volumes(gpu: int):
    """노트북 공용 볼륨 / 마운트. GPU 사용 시 /dev/shm 메모리 볼륨 추가"""
    volumes = [
        client.V1Volume(
            name=AIM_RUNS_VOLUME,
            persistent_volume_claim=client.V1PersistentVolumeClaimVolumeSource(claim_name=AIM_RUNS_CLAIM),
        )
    ]
    mounts = [
        client.V1VolumeMount(name=NOTEBOOK_VOLUME_TEMPLATE, mount_path=NOTEBOOK_WORK_DIR),
        client.V1VolumeMount(name=AIM_RUNS_VOLUME, mount_path=AIM_RUNS_MOUNT),
    ]
    if gpu > 0:
        volumes.append(client.V1Volume(
            name="dshm",
            empty_dir=client.V1EmptyDirVolumeSource(medium="Memory", size_limit=settings.SHM_SIZE_LIMIT),
        ))
        mounts.append(client.V1VolumeMount(name="dshm", mount_path="/dev/shm"))
    return volumes, mounts


def build_notebook_statefulset(
    name: str,
    service_name: str,
    containers: List[client.V1Container],
    volumes: List[client.V1Volume],
    disk_storage: str,
    resources: client.V1ResourceRequirements,
    gpu: int = 0,
    node_selector: Optional[str] = None,
) -> client.V1StatefulSet:
    """노트북 StatefulSet (replica 1, 작업 디렉터리용 volumeClaimTemplate 포함)"""
    for container in containers:
        container.resources = client.V1ResourceRequirements(
            requests=dict(resources.requests or {}),
            limits=dict(resources.limits or {}),
        )

    pod_spec = client.V1PodSpec(
        node_selector=_node_selector(node_selector),
        security_context=client.V1PodSecurityContext(run_as_user=0, run_as_group=0, fs_group=1000),
        volumes=volumes,
        containers=containers,
    )
    configure_gpu(pod_spec, gpu)

    return client.V1StatefulSet(
        metadata=client.V1ObjectMeta(name=name, labels={"app": name}),
        spec=client.V1StatefulSetSpec(
            service_name=service_name,
            replicas=1,
            selector=client.V1LabelSelector(match_labels={"app": name}),
            template=client.V1PodTemplateSpec(
                metadata=client.V1ObjectMeta(labels={"app": name}),
                spec=pod_spec,
            ),
            volume_claim_templates=[
                client.V1PersistentVolumeClaim(
                    metadata=client.V1ObjectMeta(name=NOTEBOOK_VOLUME_TEMPLATE),
                    spec=client.V1PersistentVolumeClaimSpec(
                        access_modes=["ReadWriteMany"],
                        storage_class_name=settings.STORAGE_CLASS,
                        resources=client.V1VolumeResourceRequirements(requests={"storage": disk_storage}),
                    ),
                )
            ],
        ),
    )


# ============================================
# 모델 / LLM Deployment
# ============================================

def build_model_deployment(
    name: str,
    image: str,
    pvc_name: str,
    port: int,
    resources: client.V1ResourceRequirements,
    env: List[client.V1EnvVar],
    gpu: int = 0,
    node_selector: Optional[str] = None,
) -> client.V1Deployment:
    """모델 서빙 Deployment: PVC 를 /deploy/deployment, xtract 를 /deploy/be_ml_data 에 마운트"""
    container = build_container(
        name,
        image,
        port,
        volume_mounts=[
            client.V1VolumeMount(name=pvc_name, mount_path=MODEL_DEPLOYMENT_MOUNT),
            client.V1VolumeMount(name="xtract", mount_path=MODEL_DATA_MOUNT),
        ],
        env=env,
        resources=resources,
    )
    pod_spec = client.V1PodSpec(
        node_selector=_node_selector(node_selector),
        volumes=[
            client.V1Volume(
                name=pvc_name,
                persistent_volume_claim=client.V1PersistentVolumeClaimVolumeSource(claim_name=pvc_name),
            ),
            client.V1Volume(
                name="xtract",
                persistent_volume_claim=client.V1PersistentVolumeClaimVolumeSource(claim_name="xtract"),
            ),
        ],
        containers=[container],
    )
    configure_gpu(pod_spec, gpu)

    return client.V1Deployment(
        metadata=client.V1ObjectMeta(name=name, labels={"app": name}),
        spec=client.V1DeploymentSpec(
            replicas=1,
            selector=client.V1LabelSelector(match_labels={"app": name}),
            template=client.V1PodTemplateSpec(
                metadata=client.V1ObjectMeta(labels={"app": name}),
                spec=pod_spec,
            ),
        ),
    )
