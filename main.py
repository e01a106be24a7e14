"""
Workload control plane API

API 구조:
- /api/resources, /api/totalresources, /api/clusterresources - 노드 리소스 조회
- /api/resources/check - admission 사전 확인
- /api/notebooks/*     - 노트북 (Labspace)
- /api/modeldeployment/* - 모델 서빙
- /api/llm/*           - LLM 추론 엔드포인트
- /api/plugin/*        - 플러그인 설치 / 제거
- /api/health, /api/k8s/health - 헬스체크
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import settings
from core.kubernetes import create_k8s_clients
from routers import (
    resources_router,
    notebooks_router,
    model_deployments_router,
    llm_router,
    plugins_router,
    health_router,
)

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Kubernetes 클라이언트를 한 번 생성해 app.state 에 보관"""
    app.state.kube = create_k8s_clients()
    logger.info("Kubernetes clients initialized")
    try:
        yield
    finally:
        app.state.kube.close()


app = FastAPI(title=settings.APP_TITLE, version=settings.APP_VERSION, lifespan=lifespan)

# CORS 설정
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=settings.CORS_CREDENTIALS,
    allow_methods=settings.CORS_METHODS,
    allow_headers=settings.CORS_HEADERS,
)

app.include_router(resources_router)
app.include_router(notebooks_router)
app.include_router(model_deployments_router)
app.include_router(llm_router)
app.include_router(plugins_router)
app.include_router(health_router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
