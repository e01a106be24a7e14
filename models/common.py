"""
공통 응답 모델
"""
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field


class APIResponse(BaseModel):
    """모든 API 응답 envelope

    status 는 statusCode 가 200 일 때만 True
    """
    model_config = ConfigDict(populate_by_name=True)

    message: str
    status_code: int = Field(200, alias="statusCode")
    status: bool = True
    data: Optional[Any] = None


def api_response(message: str, data: Any = None, status_code: int = 200) -> dict:
    """APIResponse 를 JSON 직렬화 가능한 dict 로 생성"""
    response = APIResponse(
        message=message,
        status_code=status_code,
        status=status_code == 200,
        data=data,
    )
    return response.model_dump(by_alias=True, mode="json")
