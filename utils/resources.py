"""
Kubernetes 리소스 단위 변환 유틸리티
CPU, 메모리, GPU quantity 문자열을 표준 단위로 변환
"""
from decimal import Decimal, InvalidOperation
from typing import Union

from kubernetes.utils import parse_quantity

GIB = Decimal(1024 ** 3)

Quantity = Union[str, int, float, Decimal, None]


def _quantity(value: Quantity) -> Decimal:
    if value is None or (isinstance(value, str) and not value.strip()):
        return Decimal(0)
    try:
        return parse_quantity(str(value).strip() if isinstance(value, str) else value)
    except (ValueError, InvalidOperation) as e:
        raise ValueError(f"invalid resource quantity: {value!r}") from e


def parse_cpu_cores(value: Quantity) -> Decimal:
    """CPU quantity를 코어 단위로 변환

    - '500m' -> 0.5
    - '2' -> 2
    """
    return _quantity(value)


def parse_memory_bytes(value: Quantity) -> Decimal:
    """메모리 quantity를 바이트로 변환

    - '1Gi' -> 1073741824
    - '1G' -> 1000000000
    """
    return _quantity(value)


def parse_gpu_count(value: Quantity) -> Decimal:
    """GPU 개수 (소수 허용, 비교용)"""
    return _quantity(value)


def parse_whole_gpu(value: Quantity) -> int:
    """GPU 요청은 정수만 허용 (컨테이너 리소스용)"""
    count = _quantity(value)
    if count != count.to_integral_value():
        raise ValueError(f"GPU value must be an integer: {value!r}")
    return int(count)


def whole_cores(cores: Decimal) -> int:
    """정수 코어 (0 방향으로 버림)"""
    return int(cores)


def whole_gib(num_bytes: Decimal) -> int:
    """바이트를 정수 GiB 로 변환 (0 방향으로 버림)"""
    return int(num_bytes / GIB)


def parse_cpu(cpu_str: str) -> float:
    """CPU 문자열을 밀리코어(millicores)로 변환 (메트릭 표시용)

    - '100m' -> 100
    - '2' -> 2000
    - '1000000n' -> 1
    """
    if not cpu_str:
        return 0
    return float(_quantity(cpu_str) * 1000)


def parse_memory(mem_str: str) -> int:
    """메모리 문자열을 MB(MiB)로 변환 (메트릭 표시용)"""
    if not mem_str:
        return 0
    return int(_quantity(mem_str) / (1024 * 1024))


__all__ = [
    "parse_cpu_cores",
    "parse_memory_bytes",
    "parse_gpu_count",
    "parse_whole_gpu",
    "whole_cores",
    "whole_gib",
    "parse_cpu",
    "parse_memory",
    "GIB",
]
