from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from humorai.models.caption import GeneratedCaption


class PipelineStep(str, Enum):
    """The four remote operations of the upload pipeline, in execution order."""
    PRESIGN = 'presign'
    UPLOAD = 'upload'
    REGISTER = 'register'
    GENERATE = 'generate'


class PipelineStage(str, Enum):
    IDLE = 'idle'
    PRESIGNING = 'presigning'
    UPLOADING = 'uploading'
    REGISTERING = 'registering'
    GENERATING = 'generating'
    DONE = 'done'
    ERROR = 'error'


class StepStatus(str, Enum):
    PENDING = 'pending'
    ACTIVE = 'active'
    DONE = 'done'
    ERROR = 'error'


STEP_ORDER: tuple[PipelineStep, ...] = (
    PipelineStep.PRESIGN,
    PipelineStep.UPLOAD,
    PipelineStep.REGISTER,
    PipelineStep.GENERATE,
)

STAGE_FOR_STEP: dict[PipelineStep, PipelineStage] = {
    PipelineStep.PRESIGN: PipelineStage.PRESIGNING,
    PipelineStep.UPLOAD: PipelineStage.UPLOADING,
    PipelineStep.REGISTER: PipelineStage.REGISTERING,
    PipelineStep.GENERATE: PipelineStage.GENERATING,
}

STEP_FOR_STAGE: dict[PipelineStage, PipelineStep] = {stage: step for step, stage in STAGE_FOR_STEP.items()}

RUNNING_STAGES = frozenset(STAGE_FOR_STEP.values())

STAGE_LABELS: dict[PipelineStage, str] = {
    PipelineStage.IDLE: '',
    PipelineStage.PRESIGNING: 'Getting upload URL...',
    PipelineStage.UPLOADING: 'Uploading image...',
    PipelineStage.REGISTERING: 'Registering image...',
    PipelineStage.GENERATING: 'Generating captions (this may take a moment)...',
    PipelineStage.DONE: 'Done!',
    PipelineStage.ERROR: 'Something went wrong.',
}


class ImageFile(BaseModel):
    """A local image chosen for upload, with its declared media type."""
    name: str
    content_type: str
    data: bytes = Field(repr=False)

    @property
    def size(self) -> int:
        return len(self.data)


class PresignedUpload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    presigned_url: str = Field(alias='presignedUrl', min_length=1)
    cdn_url: str = Field(alias='cdnUrl', min_length=1)


class RegisteredImage(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    image_id: str = Field(alias='imageId', min_length=1)


class PipelineRun(BaseModel):
    """Client-held state of the current upload. Replaced on every file selection."""
    file: ImageFile | None = None
    preview: str | None = Field(default=None, repr=False)
    stage: PipelineStage = PipelineStage.IDLE
    failed_step: PipelineStep | None = None
    error: str | None = None
    results: list[GeneratedCaption] = Field(default_factory=list)

    @property
    def is_running(self) -> bool:
        return self.stage in RUNNING_STAGES
