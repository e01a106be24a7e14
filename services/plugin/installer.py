"""
플러그인 설치 오케스트레이터

download -> extract -> manifest 검증 -> 번들 보관 -> namespace -> DB 자격 증명 -> deployment.yaml 생성
-> apply -> ingress -> logo -> callback -> registry 기록

변경을 만드는 단계는 보상 작업(compensator)을 RollbackStack 에 쌓고,
실패 시 가장 최근 것부터 되돌린다.
"""
import logging
import os
import shutil
import time
import zipfile
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import yaml

from core.config import settings
from core.exceptions import (
    BundleError,
    ClusterMutationError,
    ControlPlaneError,
    ManifestValidationError,
    RollbackError,
)
from core.kubernetes import KubeClients
from models.plugin import (
    DatabaseCredentials,
    PluginInstallRequest,
    PluginInstallResponse,
    PluginRecord,
    PluginRollbackRequest,
    PluginUpdateRequest,
)
from services import cluster
from services.plugin.database import ensure_database_credentials, rollback_database_credentials
from services.plugin.logo import process_logo, restore_logo_backup
from services.plugin.manifest import ManifestParseResult, parse_manifest_from_files
from services.plugin.registry import (
    artifact_dir,
    delete_plugin_record,
    load_plugin_record,
    remove_artifacts,
    save_plugin_record,
)
from utils.config import PLUGIN_FRONTEND_PORT, PLUGIN_BACKEND_PORT, PLUGIN_ROUTE_PREFIX
from utils.helpers import DownloadError, copy_all_artifacts, download_file, extract_zip

logger = logging.getLogger(__name__)

OPERATION_INSTALL = "install"
OPERATION_UPDATE = "update"


def frontend_name(identifier: str) -> str:
    return f"{identifier}-frontend"


def backend_name(identifier: str) -> str:
    return f"{identifier}-backend"


def route_paths(route: str) -> Tuple[str, str]:
    """(프론트엔드 경로, 백엔드 경로)"""
    return f"{PLUGIN_ROUTE_PREFIX}/{route}", f"{PLUGIN_ROUTE_PREFIX}/{route}/api"


class RollbackStack:
    """보상 작업 스택 (LIFO)

    각 보상 작업은 개별적으로 보호되어, 하나가 실패해도 나머지는 계속 실행된다.
    """

    def __init__(self):
        self._steps: List[Tuple[str, Callable[[], Any]]] = []

    def __len__(self):
        return len(self._steps)

    def push(self, description: str, compensator: Callable[[], Any]) -> None:
        self._steps.append((description, compensator))

    def unwind(self) -> Optional[Exception]:
        """모든 보상 작업 실행. 첫 번째 실패를 반환 (없으면 None)"""
        first_error = None
        while self._steps:
            description, compensator = self._steps.pop()
            try:
                compensator()
                logger.info(f"Rolled back: {description}")
            except Exception as e:
                logger.error(f"Rollback step '{description}' failed: {e}")
                if first_error is None:
                    first_error = e
        return first_error

    def discard(self) -> None:
        self._steps.clear()


def build_image(image: str, tag: Optional[str]) -> str:
    """tag 가 있고 image 에 ':' 가 없을 때만 태그를 붙인다"""
    if not tag or ":" in image:
        return image
    return f"{image}:{tag}"


def resolve_port(ports: Optional[List[int]], fallback: int) -> int:
    if not ports or not ports[0]:
        return fallback
    return int(ports[0])


def resolve_replicas(replicas: Optional[int]) -> int:
    return replicas if replicas and replicas > 0 else 1


def _env_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return "" if value is None else str(value)


def to_env(env: Optional[Dict[str, Any]]) -> List[Dict[str, str]]:
    return [{"name": k, "value": _env_value(v)} for k, v in (env or {}).items()]


def deployment_document(name: str, namespace: str, labels: Dict[str, str], image: str,
                        port: int, env: List[Dict[str, str]], replicas: int) -> Dict[str, Any]:
    container = {"name": name, "image": image, "ports": [{"containerPort": port}]}
    if env:
        container["env"] = env
    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": {"name": name, "namespace": namespace, "labels": labels},
        "spec": {
            "replicas": replicas,
            "selector": {"matchLabels": {"app": name}},
            "template": {
                "metadata": {"labels": labels},
                "spec": {"containers": [container]},
            },
        },
    }


def service_document(name: str, namespace: str, labels: Dict[str, str], port: int) -> Dict[str, Any]:
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": {"name": name, "namespace": namespace, "labels": labels},
        "spec": {
            "selector": {"app": name},
            "ports": [{"port": port, "targetPort": port}],
        },
    }


class InstallOperation:
    """설치/업데이트 한 번의 실행 상태"""

    def __init__(self, installer: "PluginInstaller", identifier: str, kind: str,
                 request: PluginInstallRequest):
        self.installer = installer
        self.kube = installer.kube
        self.identifier = identifier
        self.kind = kind
        self.request = request

        self.artifact_dir = artifact_dir(identifier)
        self.workspace_dir = os.path.join(self.artifact_dir, f".tmp-{time.time_ns()}")
        self.zip_file = os.path.join(self.workspace_dir, "bundle.zip")
        self.extract_dir = os.path.join(self.workspace_dir, "extracted")
        self.deployment_yaml = os.path.join(self.artifact_dir, "deployment.yaml")
        self.bundle_dir = os.path.join(self.artifact_dir, "bundle")
        self.bundle_backup: Optional[str] = None

        self.manifest_result: Optional[ManifestParseResult] = None
        self.namespace = settings.PLUGIN_NAMESPACE
        self.db_credentials: Optional[DatabaseCredentials] = None
        self.logo_path = ""
        self.frontend_url = ""
        self.backend_url = ""
        self.frontend_port = PLUGIN_FRONTEND_PORT
        self.backend_port = PLUGIN_BACKEND_PORT
        self.started_at = datetime.now(timezone.utc)
        self.rollback_stack = RollbackStack()

    @property
    def manifest(self):
        return self.manifest_result.manifest

    @property
    def route(self) -> str:
        return self.request.route_path or self.identifier

    def run(self) -> None:
        self.prepare_workspace()
        self.download_bundle()
        files = self.extract_bundle()
        self.parse_manifest(files)
        self.store_bundle()
        self.ensure_namespace()
        self.handle_database()
        self.write_deployment_file()
        self.apply_deployment()
        self.ensure_ingress()
        self.handle_logo()
        self.send_callbacks()
        self.write_registry_record()

    def rollback(self) -> Optional[Exception]:
        logger.warning(f"Rolling back plugin {self.kind} for {self.identifier}")
        return self.rollback_stack.unwind()

    def cleanup(self) -> None:
        shutil.rmtree(self.workspace_dir, ignore_errors=True)

    def commit(self) -> None:
        if self.bundle_backup:
            shutil.rmtree(self.bundle_backup, ignore_errors=True)

    def response(self) -> PluginInstallResponse:
        return PluginInstallResponse(
            frontend_url=self.frontend_url,
            backend_url=self.backend_url,
            namespace=self.namespace,
            deployment=self.deployment_yaml,
            release_id=self.request.release_id,
            engine_key=self.manifest.engine_key,
            version=self.manifest.version,
        )

    # ============================================
    # 단계
    # ============================================

    def prepare_workspace(self) -> None:
        try:
            os.makedirs(self.workspace_dir, exist_ok=True)
            os.makedirs(settings.PLUGIN_REGISTRY_DIR, exist_ok=True)
        except OSError as e:
            raise ControlPlaneError(f"prepare workspace: {e}") from e
        self.rollback_stack.push(
            "remove workspace", lambda: shutil.rmtree(self.workspace_dir, ignore_errors=True)
        )

    def download_bundle(self) -> None:
        if not self.request.zip_url:
            raise ManifestValidationError("zipUrl is required")
        logger.info(f"Downloading plugin bundle from {self.request.zip_url}")
        try:
            download_file(self.request.zip_url, self.zip_file,
                          timeout=settings.DOWNLOAD_TIMEOUT_SECONDS)
        except (DownloadError, httpx.HTTPError, OSError) as e:
            raise BundleError(f"download zip: {e}") from e
        self.rollback_stack.push("remove bundle", lambda: os.remove(self.zip_file))

    def extract_bundle(self) -> List[str]:
        try:
            files = extract_zip(self.zip_file, self.extract_dir)
        except (ValueError, zipfile.BadZipFile, OSError) as e:
            raise BundleError(f"extract bundle: {e}") from e
        self.rollback_stack.push(
            "remove extracted bundle", lambda: shutil.rmtree(self.extract_dir)
        )
        logger.info(f"Extracted {len(files)} files from plugin bundle")
        return files

    def parse_manifest(self, files: List[str]) -> None:
        result = parse_manifest_from_files(files)
        engine_key = result.manifest.engine_key

        if self.request.engine_key and self.request.engine_key.lower() != engine_key.lower():
            raise ManifestValidationError(
                f"manifest engine key {engine_key} does not match request {self.request.engine_key}"
            )
        if self.identifier.lower() != engine_key.lower():
            raise ManifestValidationError(
                f"identifier {self.identifier} does not match manifest engine key {engine_key}"
            )
        expected = self.request.expected_manifest_sha
        if expected and expected.lower() != result.sha256.lower():
            raise ManifestValidationError(
                f"manifest hash mismatch: expected {expected} got {result.sha256}"
            )

        self.manifest_result = result
        self.namespace = result.manifest.kubernetes.namespace or settings.PLUGIN_NAMESPACE
        self.frontend_port = resolve_port(result.manifest.docker.frontend.ports, PLUGIN_FRONTEND_PORT)
        self.backend_port = resolve_port(result.manifest.docker.backend.ports, PLUGIN_BACKEND_PORT)

    def store_bundle(self) -> None:
        """압축 해제한 번들 전체를 <artifact dir>/bundle 로 복사. 기존 번들은 .bak-<ns> 로 보관"""
        try:
            if os.path.exists(self.bundle_dir):
                self.bundle_backup = f"{self.bundle_dir}.bak-{time.time_ns()}"
                os.rename(self.bundle_dir, self.bundle_backup)
        except OSError as e:
            raise ControlPlaneError(f"backup plugin bundle: {e}") from e

        def restore():
            shutil.rmtree(self.bundle_dir, ignore_errors=True)
            if self.bundle_backup:
                os.rename(self.bundle_backup, self.bundle_dir)

        self.rollback_stack.push("restore plugin bundle", restore)
        try:
            copy_all_artifacts(self.extract_dir, self.bundle_dir)
        except OSError as e:
            raise ControlPlaneError(f"copy plugin artifacts: {e}") from e
        logger.info(f"Stored plugin bundle at {self.bundle_dir}")

    def ensure_namespace(self) -> None:
        logger.info(f"Ensuring namespace {self.namespace}")
        cluster.create_namespace(self.kube, self.namespace)

    def handle_database(self) -> None:
        mode = (self.manifest.permissions.database.mode or "").lower()
        if mode in ("", "none"):
            return
        try:
            creds, created = ensure_database_credentials(
                self.artifact_dir, self.identifier, self.manifest
            )
        except (OSError, ValueError) as e:
            raise ControlPlaneError(f"database credentials: {e}") from e
        self.db_credentials = creds
        if created:
            self.rollback_stack.push(
                "remove database credentials",
                lambda: rollback_database_credentials(self.artifact_dir),
            )

    def build_documents(self) -> List[Dict[str, Any]]:
        """프론트엔드/백엔드 Deployment 2개 + Service 2개"""
        manifest = self.manifest
        base_labels = dict(manifest.kubernetes.labels or {})
        front = frontend_name(self.identifier)
        back = backend_name(self.identifier)
        front_labels = {**base_labels, "app": front}
        back_labels = {**base_labels, "app": back}

        backend_env = to_env(manifest.docker.backend.env)
        if self.db_credentials is not None:
            backend_env.append({"name": "DATABASE_URL", "value": self.db_credentials.dsn})
        backend_env.append({
            "name": "MIGRATION_ENABLED",
            "value": _env_value(manifest.docker.backend.migration),
        })

        return [
            deployment_document(
                front, self.namespace, front_labels,
                build_image(manifest.docker.frontend.image, manifest.docker.frontend.tag),
                self.frontend_port, to_env(manifest.docker.frontend.env),
                resolve_replicas(manifest.docker.frontend.replicas),
            ),
            deployment_document(
                back, self.namespace, back_labels,
                build_image(manifest.docker.backend.image, manifest.docker.backend.tag),
                self.backend_port, backend_env,
                resolve_replicas(manifest.docker.backend.replicas),
            ),
            service_document(front, self.namespace, front_labels, self.frontend_port),
            service_document(back, self.namespace, back_labels, self.backend_port),
        ]

    def write_deployment_file(self) -> None:
        """deployment.yaml 을 임시 파일에 쓴 뒤 rename 으로 교체"""
        previous = None
        try:
            os.makedirs(self.artifact_dir, exist_ok=True)
            if os.path.exists(self.deployment_yaml):
                with open(self.deployment_yaml, "rb") as f:
                    previous = f.read()
            tmp_file = f"{self.deployment_yaml}.tmp"
            with open(tmp_file, "w", encoding="utf-8") as f:
                yaml.safe_dump_all(self.build_documents(), f, sort_keys=False, default_flow_style=False)
            os.replace(tmp_file, self.deployment_yaml)
        except OSError as e:
            raise ControlPlaneError(f"write deployment.yaml: {e}") from e

        def restore():
            if previous is None:
                os.remove(self.deployment_yaml)
            else:
                with open(self.deployment_yaml, "wb") as f:
                    f.write(previous)

        self.rollback_stack.push("restore deployment.yaml", restore)
        logger.info(f"Wrote {self.deployment_yaml}")

    def apply_deployment(self) -> None:
        """deployment.yaml 의 오브젝트 생성. 이미 있는 오브젝트는 건너뜀"""
        with open(self.deployment_yaml, "r", encoding="utf-8") as f:
            documents = [doc for doc in yaml.safe_load_all(f) if doc]

        created: List[Tuple[str, str]] = []

        def delete_created():
            for kind, name in reversed(created):
                if kind == "Deployment":
                    cluster.delete_deployment(self.kube, self.namespace, name)
                else:
                    cluster.delete_service(self.kube, self.namespace, name)

        self.rollback_stack.push("delete applied objects", delete_created)

        for doc in documents:
            kind = doc.get("kind")
            name = doc["metadata"]["name"]
            if kind == "Deployment":
                if cluster.deployment_exists(self.kube, self.namespace, name):
                    logger.info(f"Deployment {self.namespace}/{name} exists, skipping")
                    continue
                cluster.create_deployment(self.kube, self.namespace, doc)
            elif kind == "Service":
                if cluster.service_exists(self.kube, self.namespace, name):
                    logger.info(f"Service {self.namespace}/{name} exists, skipping")
                    continue
                cluster.create_service_object(self.kube, self.namespace, doc)
            else:
                raise ClusterMutationError(f"unsupported kind in deployment.yaml: {kind}")
            created.append((kind, name))

    def ensure_ingress(self) -> None:
        front_path, back_path = route_paths(self.route)
        added: List[str] = []

        def remove_added():
            for path in reversed(added):
                cluster.delete_rule_from_ingress(self.kube, self.namespace, path, settings.PLUGIN_INGRESS)

        self.rollback_stack.push("remove ingress rules", remove_added)

        front = frontend_name(self.identifier)
        back = backend_name(self.identifier)
        if cluster.append_rule_to_ingress(self.kube, self.namespace, settings.PLUGIN_INGRESS,
                                          front, front_path, port=self.frontend_port):
            added.append(front_path)
        if cluster.append_rule_to_ingress(self.kube, self.namespace, settings.PLUGIN_INGRESS,
                                          back, back_path, port=self.backend_port):
            added.append(back_path)

        self.frontend_url = f"{front}.{self.namespace}.svc.cluster.local"
        self.backend_url = f"{back}.{self.namespace}.svc.cluster.local"

    def handle_logo(self) -> None:
        try:
            new_logo, backup = process_logo(self.manifest, self.extract_dir, self.artifact_dir)
        except OSError as e:
            raise ControlPlaneError(f"process logo: {e}") from e
        self.logo_path = new_logo
        if new_logo:
            self.rollback_stack.push("restore logo", lambda: restore_logo_backup(new_logo, backup))

    def callback_payload(self) -> Dict[str, Any]:
        return {
            "engineKey": self.manifest.engine_key,
            "releaseId": self.request.release_id,
            "version": self.manifest.version,
            "frontendUrl": self.frontend_url,
            "backendUrl": self.backend_url,
            "namespace": self.namespace,
            "logoPath": self.logo_path,
            "manifestSha": self.manifest_result.sha256,
            "permissions": self.manifest.permissions.model_dump(),
            "databaseDsn": self.db_credentials.dsn if self.db_credentials else "",
            "operation": self.kind,
            "timestamp": self.started_at.isoformat(),
        }

    def send_callbacks(self) -> None:
        callbacks = {k: v for k, v in self.request.backend_callbacks.items() if v.strip()}
        if not callbacks:
            return
        payload = self.callback_payload()
        for key, url in callbacks.items():
            try:
                response = self.installer.post_json(url, payload)
            except httpx.HTTPError as e:
                raise ControlPlaneError(f"callback {key}: {e}", status_code=502) from e
            if response.status_code >= 300:
                raise ControlPlaneError(
                    f"callback {key}: unexpected status {response.status_code}: {response.text}",
                    status_code=502,
                )
            logger.info(f"Callback {key} notified ({response.status_code})")

    def write_registry_record(self) -> None:
        record = PluginRecord(
            identifier=self.identifier,
            engine_key=self.manifest.engine_key,
            release_id=self.request.release_id,
            version=self.manifest.version,
            namespace=self.namespace,
            route_path=self.request.route_path,
            manifest_sha=self.manifest_result.sha256,
            manifest_path=self.manifest_result.path,
            deployment_path=self.deployment_yaml,
            logo_path=self.logo_path,
            database=self.db_credentials or DatabaseCredentials(),
            updated_at=datetime.now(timezone.utc),
        )
        try:
            save_plugin_record(record)
        except OSError as e:
            raise ControlPlaneError(f"write plugin record: {e}") from e


class PluginInstaller:
    """플러그인 설치 / 업데이트 / 제거"""

    def __init__(self, kube: KubeClients, http_client: Optional[httpx.Client] = None):
        self.kube = kube
        self.http_client = http_client

    def post_json(self, url: str, payload: Dict[str, Any]) -> httpx.Response:
        if self.http_client is not None:
            return self.http_client.post(url, json=payload)
        with httpx.Client(timeout=settings.HTTP_TIMEOUT_SECONDS) as client:
            return client.post(url, json=payload)

    def install(self, identifier: str, request: PluginInstallRequest) -> PluginInstallResponse:
        return self._execute(identifier, OPERATION_INSTALL, request)

    def update(self, identifier: str, request: PluginUpdateRequest) -> PluginInstallResponse:
        return self._execute(identifier, OPERATION_UPDATE, request)

    def _execute(self, identifier: str, kind: str, request: PluginInstallRequest) -> PluginInstallResponse:
        if not identifier.strip():
            raise ControlPlaneError("identifier is required", status_code=400)

        operation = InstallOperation(self, identifier, kind, request)
        logger.info(f"Starting plugin {kind} for {identifier}")
        try:
            operation.run()
        except Exception as e:
            logger.error(f"Plugin {kind} for {identifier} failed: {e}")
            rollback_error = operation.rollback()
            if rollback_error is not None:
                logger.error(f"Failed to rollback plugin {kind} for {identifier}: {rollback_error}")
                raise RollbackError(
                    f"rollback failed: {rollback_error}", original=e
                ) from e
            raise
        finally:
            operation.cleanup()

        operation.rollback_stack.discard()
        operation.commit()
        logger.info(f"Plugin {kind} for {identifier} completed")
        return operation.response()

    def rollback(self, identifier: str, request: PluginRollbackRequest) -> None:
        """설치된 플러그인의 클러스터 리소스, 아티팩트, 레지스트리 기록 제거"""
        record = load_plugin_record(identifier)
        namespace = record.namespace or settings.PLUGIN_NAMESPACE
        route = request.route_path or record.route_path or identifier
        front_path, back_path = route_paths(route)

        for name, path in ((frontend_name(identifier), front_path),
                           (backend_name(identifier), back_path)):
            cluster.delete_deployment(self.kube, namespace, name)
            cluster.delete_service(self.kube, namespace, name)
            try:
                cluster.delete_rule_from_ingress(self.kube, namespace, path, settings.PLUGIN_INGRESS)
            except ClusterMutationError as e:
                logger.error(f"Failed to delete ingress rule {path}: {e}")

        try:
            remove_artifacts(identifier)
        except OSError as e:
            raise ControlPlaneError(f"remove artifacts: {e}") from e
        delete_plugin_record(identifier)
        logger.info(f"Plugin {identifier} removed")
