# Utility functions
from .helpers import (
    download_file,
    extract_zip,
    copy_all_artifacts,
    copy_selected_artifacts,
    list_folder_names,
    format_age,
    sanitize_name,
)
from .resources import (
    parse_cpu_cores,
    parse_memory_bytes,
    parse_gpu_count,
    parse_whole_gpu,
    parse_cpu,
    parse_memory,
)

# 환경 자동 감지 K8s 클라이언트 (로컬 개발 지원)
from .k8s_client import (
    load_k8s_config,
    is_running_in_cluster,
    get_environment_info,
)

__all__ = [
    'download_file', 'extract_zip', 'copy_all_artifacts', 'copy_selected_artifacts',
    'list_folder_names', 'format_age', 'sanitize_name',
    'parse_cpu_cores', 'parse_memory_bytes', 'parse_gpu_count', 'parse_whole_gpu',
    'parse_cpu', 'parse_memory',
    # 환경 자동 감지 유틸리티
    'load_k8s_config', 'is_running_in_cluster', 'get_environment_info',
]
