from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from humorai.api.base_api import BaseApi
from humorai.exceptions import APIError
from humorai.models.caption import GeneratedCaption
from humorai.models.pipeline import PresignedUpload, RegisteredImage
from humorai.utils.validation import normalize_content_type, validate_id


def _bearer(token: str) -> dict[str, str]:
    return {'Authorization': f'Bearer {token}'}


def _parse(model: type[BaseModel], json_response: Any) -> Any:
    try:
        return model.model_validate(json_response)
    except PydanticValidationError as e:
        raise APIError(f'Unexpected {model.__name__} response: {json_response!r}', body=str(json_response)) from e


def normalize_captions_response(json_response: Any) -> list[GeneratedCaption]:
    """
    Flatten the caption generation response into a list.

    The service answers either with a bare list or with `{"captions": [...]}`.
    Anything without a list yields no captions.
    """
    if isinstance(json_response, list):
        items = json_response
    elif isinstance(json_response, dict):
        items = json_response.get('captions') or []
    else:
        items = []
    return [_parse(GeneratedCaption, item) for item in items]


class PipelineApi(BaseApi):
    """
    Captioning service pipeline endpoints.

    Every call takes the bearer credential explicitly; it is read fresh for each run
    instead of living in the client's default headers.
    """

    async def generate_presigned_url(self, content_type: str, token: str) -> PresignedUpload:
        """
        Requests a single-use upload target for a file.

        :param content_type: Media type of the file, `image/jpg` is sent as `image/jpeg`
        :param token: Bearer credential
        :return: The presigned upload URL and the public URL the file will be served from
        """
        json_response = await self._client.post(
            '/pipeline/generate-presigned-url',
            data={'contentType': normalize_content_type(content_type)},
            headers=_bearer(token)
        )
        return _parse(PresignedUpload, json_response)

    async def upload_image_from_url(self, image_url: str, token: str, is_common_use: bool = False) -> RegisteredImage:
        """
        Registers an uploaded image with the pipeline.

        :param image_url: Public URL returned by the presign step
        :param token: Bearer credential
        :param is_common_use: Whether the image is shared with other users
        :return: The registered image identifier
        """
        validate_id(image_url, "image_url")
        json_response = await self._client.post(
            '/pipeline/upload-image-from-url',
            data={'imageUrl': image_url, 'isCommonUse': is_common_use},
            headers=_bearer(token)
        )
        return _parse(RegisteredImage, json_response)

    async def generate_captions(self, image_id: str, token: str) -> list[GeneratedCaption]:
        """
        Generates captions for a registered image.

        :param image_id: Identifier returned by the register step
        :param token: Bearer credential
        :return: Generated captions
        """
        validate_id(image_id, "image_id")
        json_response = await self._client.post(
            '/pipeline/generate-captions',
            data={'imageId': image_id},
            headers=_bearer(token)
        )
        return normalize_captions_response(json_response)
