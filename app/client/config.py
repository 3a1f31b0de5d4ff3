"""
Configuration for device-side client components
"""
from dataclasses import dataclass


@dataclass
class ClientConfig:
    """Settings a member device, front-desk tablet or kiosk runs with"""
    api_base_url: str = "http://localhost:8000/api/v1"
    storage_path: str = "sanctum_storage.json"
    request_timeout: float = 15.0
    org_code_min_length: int = 5
    default_primary_color: str = "#4A2040"
    search_limit: int = 10
    kiosk_processing_seconds: float = 2.0
    kiosk_success_dwell_seconds: float = 8.0
