"""Services wrapping the LLM provider, the PIMS and Xano."""

from .openai_service import OpenAIService
from .pims_service import PIMSService, create_pims_client
from .story_service import StoryService
from .xano_service import XanoService, create_xano_client

__all__ = [
    "OpenAIService",
    "PIMSService",
    "StoryService",
    "XanoService",
    "create_pims_client",
    "create_xano_client",
]
