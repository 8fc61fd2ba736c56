"""
Web module for Print Dispatch.

Exposes blueprints for:
- CloudPRNT printer polling (Phase A / Phase B): cloudprnt_bp
- Enqueue, receipt and inspection JSON API: api_bp
- Health endpoint: health_bp
"""

from .api import api_bp
from .cloudprnt import cloudprnt_bp
from .health import health_bp

__all__ = ["api_bp", "cloudprnt_bp", "health_bp"]
