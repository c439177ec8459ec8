"""
Weft configuration: policies, service baseline and provider settings.
"""

from weft.config.policies import FunctionCallingPolicy, StructuredOutputPolicy
from weft.config.provider import ProviderConfig
from weft.config.service import ServiceConfig

__all__ = [
    "FunctionCallingPolicy",
    "StructuredOutputPolicy",
    "ServiceConfig",
    "ProviderConfig",
]
