from .config import ProxyConfig
from .forwarder import Forwarder
from .url_validator import TargetURL, validate_target_url

__all__ = [
    "Forwarder",
    "ProxyConfig",
    "TargetURL",
    "validate_target_url",
]
