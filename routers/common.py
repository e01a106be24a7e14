"""
라우터 공통 헬퍼
서비스 함수를 스레드풀에서 실행하고 예외를 HTTP 응답으로 변환
"""
import logging
from typing import Any, Callable

from fastapi import HTTPException
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel

from core.exceptions import ControlPlaneError

logger = logging.getLogger(__name__)


async def call_service(func: Callable[..., Any], *args, **kwargs) -> Any:
    """블로킹 서비스 호출을 스레드풀에서 실행하고 결과를 기다림

    ControlPlaneError 는 해당 status_code 로, 그 외 예외는 500 으로 변환
    """
    try:
        return await run_in_threadpool(func, *args, **kwargs)
    except ControlPlaneError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.exception(f"Unexpected error in {getattr(func, '__name__', func)}")
        raise HTTPException(status_code=500, detail=str(e))


def dump(value: Any) -> Any:
    """pydantic 모델 (또는 그 목록/딕셔너리) 을 camelCase dict 로 변환"""
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, mode="json")
    if isinstance(value, list):
        return [dump(v) for v in value]
    if isinstance(value, dict):
        return {k: dump(v) for k, v in value.items()}
    return value
