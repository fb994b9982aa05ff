import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import TypeVar

from loguru import logger

from humorai.api.pipeline_api import PipelineApi
from humorai.api.storage_api import StorageApi
from humorai.exceptions import APIError, HumorAIError, StageFailure, ValidationError
from humorai.models.caption import GeneratedCaption
from humorai.models.pipeline import (
    STAGE_LABELS,
    STEP_FOR_STAGE,
    ImageFile,
    PipelineRun,
    PipelineStage,
    PipelineStep,
    StepStatus,
)
from humorai.session import SessionProvider
from humorai.utils.preview import build_preview
from humorai.utils.progress import step_status
from humorai.utils.validation import validate_content_type

T = TypeVar('T')


class UploadPipelineController:
    """
    Drives one image through presign, upload, register and generate.

    The controller owns a single PipelineRun. Selecting a file or calling `reset` replaces
    it; a run that is still awaiting the network when its PipelineRun is replaced stops
    touching controller state at its next suspension point.
    """

    def __init__(
        self,
        pipeline_api: PipelineApi,
        storage_api: StorageApi,
        session: SessionProvider,
        on_stage: Callable[[PipelineRun], None] | None = None,
        preview_size: int = 512
    ):
        """
        :param pipeline_api: Captioning service pipeline endpoints
        :param storage_api: Uploader for presigned storage targets
        :param session: Source of the bearer credential, read once per run
        :param on_stage: Optional callback(run) invoked after every stage transition
        :param preview_size: Longest edge of preview thumbnails in pixels
        """
        self.pipeline_api = pipeline_api
        self.storage_api = storage_api
        self.session = session
        self.on_stage = on_stage
        self.preview_size = preview_size
        self.state = PipelineRun()

    @property
    def file(self) -> ImageFile | None:
        return self.state.file

    @property
    def stage(self) -> PipelineStage:
        return self.state.stage

    @property
    def error(self) -> str | None:
        return self.state.error

    @property
    def results(self) -> list[GeneratedCaption]:
        return self.state.results

    @property
    def is_running(self) -> bool:
        return self.state.is_running

    @property
    def stage_label(self) -> str:
        return STAGE_LABELS[self.state.stage]

    def select_file(self, image_file: ImageFile) -> None:
        """
        Choose the image for the next run.

        :param image_file: The selected file
        :raises ValidationError: If the media type is not accepted (the previous file is kept, the
            run goes back to idle)
            or a run is in progress
        """
        if self.is_running:
            raise ValidationError("Cannot change the image while captions are being generated")
        try:
            validate_content_type(image_file.content_type)
        except ValidationError as e:
            logger.warning(f"Rejected {image_file.name}: {e}")
            self.state = PipelineRun(file=self.state.file, preview=self.state.preview, error=str(e))
            raise

        self.state = PipelineRun(file=image_file)
        logger.debug(f"Selected {image_file.name} ({image_file.content_type}, {image_file.size} bytes)")

    async def preview(self) -> str | None:
        """
        Data URL preview of the selected file, built on first use.

        :return: The preview, or None when no file is selected
        """
        run = self.state
        if run.file is None:
            return None
        if run.preview is None:
            preview = await asyncio.to_thread(build_preview, run.file, self.preview_size)
            if self.state is not run:
                return preview
            run.preview = preview
        return run.preview

    def reset(self) -> None:
        """Forget the file, preview, results and error, abandoning any run in flight."""
        if self.is_running:
            logger.debug(f"Abandoning run at stage {self.stage.value}")
        self.state = PipelineRun()

    def stage_status(self, step: PipelineStep | str) -> StepStatus:
        return step_status(step, self.state.stage, self.state.failed_step)

    async def run(self) -> PipelineRun:
        """
        Run the whole pipeline for the selected file.

        Does nothing if a run is already in progress. Failures do not raise: they leave the
        run in the `error` stage with a message naming the failed step.

        :return: The run, in its final state
        :raises ValidationError: If no file is selected
        """
        run = self.state
        async for _ in self.steps():
            pass
        return run

    async def steps(self) -> AsyncIterator[PipelineStage]:
        """
        Advance the pipeline one stage at a time, yielding each stage as it is entered.

        If the run is cancelled or the generator is closed before a terminal stage, the run
        goes back to `idle` with its file kept. An unexpected error ends it in `error` and is
        re-raised.

        :raises ValidationError: If no file is selected
        """
        run = self.state
        if run.file is None:
            raise ValidationError("Select an image before generating captions")
        if run.is_running:
            logger.debug("Pipeline already running, ignoring")
            return

        image_file = run.file
        run.stage = PipelineStage.IDLE
        run.error = None
        run.failed_step = None
        run.results = []

        try:
            yield self._enter(run, PipelineStage.PRESIGNING)
            token = await self._perform(PipelineStep.PRESIGN, self.session.get_access_token())
            presigned = await self._perform(
                PipelineStep.PRESIGN,
                self.pipeline_api.generate_presigned_url(image_file.content_type, token)
            )
            if self._abandoned(run):
                return

            yield self._enter(run, PipelineStage.UPLOADING)
            await self._perform(PipelineStep.UPLOAD, self.storage_api.upload(presigned.presigned_url, image_file))
            if self._abandoned(run):
                return

            yield self._enter(run, PipelineStage.REGISTERING)
            registered = await self._perform(
                PipelineStep.REGISTER,
                self.pipeline_api.upload_image_from_url(presigned.cdn_url, token)
            )
            if self._abandoned(run):
                return

            yield self._enter(run, PipelineStage.GENERATING)
            results = await self._perform(
                PipelineStep.GENERATE,
                self.pipeline_api.generate_captions(registered.image_id, token)
            )
            if self._abandoned(run):
                return

            run.results = results
            yield self._enter(run, PipelineStage.DONE)
        except StageFailure as e:
            if self._abandoned(run):
                return
            logger.warning(f"Pipeline failed for {image_file.name}: {e}")
            yield self._fail(run, PipelineStep(e.step), str(e))
        except Exception as e:
            if self.state is run and run.is_running:
                step = STEP_FOR_STAGE[run.stage]
                logger.exception(f"Unexpected error in {step.value} for {image_file.name}")
                self._fail(run, step, str(StageFailure(step.value, reason=str(e))))
            raise
        finally:
            # Cancelled, or closed by the consumer before reaching a terminal stage
            if self.state is run and run.is_running:
                logger.debug(f"Run interrupted at stage {run.stage.value}")
                self._enter(run, PipelineStage.IDLE)

    def _enter(self, run: PipelineRun, stage: PipelineStage) -> PipelineStage:
        run.stage = stage
        logger.debug(f"Pipeline stage -> {stage.value}")
        if self.on_stage:
            self.on_stage(run)
        return stage

    def _fail(self, run: PipelineRun, step: PipelineStep, message: str) -> PipelineStage:
        run.failed_step = step
        run.error = message
        return self._enter(run, PipelineStage.ERROR)

    def _abandoned(self, run: PipelineRun) -> bool:
        if self.state is run:
            return False
        logger.debug("Run was reset, dropping its remaining stages")
        return True

    @staticmethod
    async def _perform(step: PipelineStep, awaitable: Awaitable[T]) -> T:
        """Await one remote operation, converting its failure into a StageFailure for `step`."""
        try:
            return await awaitable
        except APIError as e:
            raise StageFailure(step.value, e.status_code, e.body, reason=str(e)) from e
        except HumorAIError as e:
            raise StageFailure(step.value, reason=str(e)) from e
