# Business logic services
from .admission import (
    check_cpu_availability,
    check_memory_availability,
    check_gpu_availability,
)
from .workload import create_workload, delete_workload, list_workloads
from .plugin import PluginInstaller

__all__ = [
    'check_cpu_availability',
    'check_memory_availability',
    'check_gpu_availability',
    'create_workload',
    'delete_workload',
    'list_workloads',
    'PluginInstaller',
]
