"""
API Routers - 기능별 모듈화

- resources        : 노드 리소스 조회, admission 사전 확인
- notebooks        : 노트북 (Labspace)
- model_deployments: 모델 서빙 Deployment
- llm              : LLM 추론 엔드포인트
- plugins          : 플러그인 설치 / 제거
- health           : 헬스체크
"""
from .resources import router as resources_router
from .notebooks import router as notebooks_router
from .model_deployments import router as model_deployments_router
from .llm import router as llm_router
from .plugins import router as plugins_router
from .health import router as health_router

__all__ = [
    'resources_router',
    'notebooks_router',
    'model_deployments_router',
    'llm_router',
    'plugins_router',
    'health_router',
]
