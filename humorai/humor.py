import sys
from collections.abc import Callable

from loguru import logger

from humorai.api.caption_api import CaptionApi
from humorai.api.pipeline_api import PipelineApi
from humorai.api.storage_api import StorageApi
from humorai.api.vote_api import VoteApi
from humorai.client import Client
from humorai.exceptions import ConfigurationError
from humorai.models.caption import FeedItem
from humorai.models.pipeline import PipelineRun
from humorai.models.session import Session
from humorai.services.pipeline_service import UploadPipelineController
from humorai.services.vote_service import VoteToggleController
from humorai.session import StaticSessionProvider
from humorai.utils.io import build_path, load_image_file, write_model
from humorai.utils.settings import Settings, get_settings


class HumorAI:
    """
    Main entry point for the HumorAI client.

    Owns the HTTP clients for the captioning service, the data store and presigned storage
    uploads, and hands out the feed, vote controllers and upload pipelines built on them.
    """

    def __init__(self, settings: Settings | None = None, session: StaticSessionProvider | None = None) -> None:
        self.settings = settings or get_settings()
        self._init_logger()
        self.session = session or StaticSessionProvider()

        self._client = Client(self.settings.api_base_url, timeout=self.settings.request_timeout)
        self.pipeline_api = PipelineApi(self._client)
        self.storage_api = StorageApi(timeout=self.settings.request_timeout)

        self._data_client: Client | None = None
        self._caption_api: CaptionApi | None = None
        self._vote_api: VoteApi | None = None
        if self.settings.data_store_url and self.settings.supabase_anon_key:
            self._data_client = Client(
                self.settings.data_store_url,
                headers=self._data_store_headers(self.settings.supabase_anon_key),
                timeout=self.settings.request_timeout
            )
            self._caption_api = CaptionApi(self._data_client)
            self._vote_api = VoteApi(self._data_client)

        if self.session.session:
            self._authorize_data_store(self.session.session.access_token)

    async def close(self) -> None:
        """Close the underlying HTTP clients."""
        await self._client.close()
        await self.storage_api.close()
        if self._data_client:
            await self._data_client.close()

    async def __aenter__(self) -> "HumorAI":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @property
    def caption_api(self) -> CaptionApi:
        if self._caption_api is None:
            raise ConfigurationError("SUPABASE_URL and SUPABASE_ANON_KEY are required to read captions")
        return self._caption_api

    @property
    def vote_api(self) -> VoteApi:
        if self._vote_api is None:
            raise ConfigurationError("SUPABASE_URL and SUPABASE_ANON_KEY are required to vote")
        return self._vote_api

    def use_session(self, access_token: str | None = None, user_id: str | None = None) -> "HumorAI":
        """
        Adopt a session obtained from the identity provider.

        :param access_token: Bearer credential, defaults to HUMORAI_ACCESS_TOKEN
        :param user_id: Voter identity, defaults to HUMORAI_USER_ID
        :return: This object, now acting for the session's user
        :raises ValueError: If either value is missing from both arguments and environment
        """
        access_token = access_token or self.settings.access_token
        user_id = user_id or self.settings.user_id

        if not access_token or not user_id:
            raise ValueError(
                "Access token and user ID are required. Provide them as arguments or "
                "set HUMORAI_ACCESS_TOKEN and HUMORAI_USER_ID environment variables."
            )

        self.session.set_session(Session(user_id=user_id, access_token=access_token))
        self._authorize_data_store(access_token)
        return self

    def sign_out(self) -> None:
        self.session.clear()
        if self._data_client and self.settings.supabase_anon_key:
            self._data_client.add_default_headers(self._data_store_headers(self.settings.supabase_anon_key))

    async def get_feed(self, limit: int | None = None) -> list[FeedItem]:
        """
        Newest captions with the signed-in viewer's votes on them.

        :param limit: Number of captions, defaults to HUMORAI_FEED_LIMIT
        :return: Feed items, newest first. Votes are all None when signed out.
        """
        captions = await self.caption_api.get_recent_captions(limit or self.settings.feed_limit)
        votes: dict[str, int] = {}
        voter_id = self.session.voter_id
        if voter_id and captions:
            votes = await self.vote_api.get_votes_for_captions(voter_id, [c.id for c in captions])
        return [FeedItem(caption=caption, vote=votes.get(caption.id)) for caption in captions]

    def vote_controller(self, item: FeedItem) -> VoteToggleController:
        return VoteToggleController(item.caption.id, self.vote_api, self.session, initial_vote=item.vote)

    def new_pipeline(self, on_stage: Callable[[PipelineRun], None] | None = None) -> UploadPipelineController:
        return UploadPipelineController(
            self.pipeline_api,
            self.storage_api,
            self.session,
            on_stage=on_stage,
            preview_size=self.settings.preview_size
        )

    async def caption_file(
        self,
        path: str,
        content_type: str | None = None,
        output_path: str | None = None,
        on_stage: Callable[[PipelineRun], None] | None = None
    ) -> PipelineRun:
        """
        Upload a local image and generate captions for it.

        :param path: Image file to upload
        :param content_type: Declared media type, guessed from the extension when omitted
        :param output_path: Optional JSON file to write the generated captions to
        :param on_stage: Optional callback(run) invoked after every stage transition
        :return: The finished run, in stage `done` or `error`
        :raises ValidationError: If the media type is not accepted
        """
        pipeline = self.new_pipeline(on_stage=on_stage)
        pipeline.select_file(load_image_file(path, content_type))
        run = await pipeline.run()
        if output_path and run.results:
            write_model(run.results, build_path(output_path))
        return run

    def _data_store_headers(self, bearer: str) -> dict[str, str]:
        return {'apikey': self.settings.supabase_anon_key or '', 'Authorization': f'Bearer {bearer}'}

    def _authorize_data_store(self, access_token: str) -> None:
        if self._data_client:
            self._data_client.add_default_headers({'Authorization': f'Bearer {access_token}'})

    def _init_logger(self) -> None:
        """Configure logging based on HUMORAI_DEBUG.

        If HUMORAI_DEBUG is set to a truthy value, enables DEBUG level logging.
        Otherwise, only WARNING and above are shown.
        """
        logger.remove()
        level = "DEBUG" if self.settings.debug else "WARNING"
        log_format = (
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        ) if self.settings.debug else "<level>{message}</level>"
        logger.add(sys.stderr, level=level, format=log_format)
