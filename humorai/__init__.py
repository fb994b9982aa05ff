"""HumorAI Client.

A Python client for browsing AI-generated image captions, voting on them, and
generating new captions through the captioning service's upload pipeline.

Example usage:
    from humorai import HumorAI

    async with HumorAI() as humor:
        humor.use_session(access_token="...", user_id="...")
        run = await humor.caption_file("cat.jpg")
        for caption in run.results:
            print(caption.content)
"""

from humorai.humor import HumorAI
from humorai.client import Client
from humorai.exceptions import (
    HumorAIError,
    AuthenticationError,
    APIError,
    ConfigurationError,
    ValidationError,
    NetworkError,
    StageFailure,
    VoteMutationFailure,
)

# Models
from humorai.models.caption import Caption, FeedItem, GeneratedCaption, Vote
from humorai.models.pipeline import ImageFile, PipelineRun, PipelineStage, PipelineStep, StepStatus
from humorai.models.session import Session

# Services
from humorai.services.pipeline_service import UploadPipelineController
from humorai.services.vote_service import VoteToggleController
from humorai.session import SessionProvider, StaticSessionProvider

__version__ = "0.1.0"

__all__ = [
    # Main entry point
    "HumorAI",
    "Client",
    # Exceptions
    "HumorAIError",
    "AuthenticationError",
    "APIError",
    "ConfigurationError",
    "ValidationError",
    "NetworkError",
    "StageFailure",
    "VoteMutationFailure",
    # Models
    "Caption",
    "FeedItem",
    "GeneratedCaption",
    "Vote",
    "ImageFile",
    "PipelineRun",
    "PipelineStage",
    "PipelineStep",
    "StepStatus",
    "Session",
    # Services
    "UploadPipelineController",
    "VoteToggleController",
    "SessionProvider",
    "StaticSessionProvider",
]
