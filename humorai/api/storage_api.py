from typing import Any

import httpx
from loguru import logger

from humorai.exceptions import APIError, NetworkError
from humorai.models.pipeline import ImageFile
from humorai.utils.validation import normalize_content_type


class StorageApi:
    """
    Direct file transfer to a presigned storage target.

    The target is a different authority than the captioning service, so this uses its own
    bare httpx client: no bearer credential, cookies or default headers are ever attached.
    """

    def __init__(self, client: httpx.AsyncClient | None = None, timeout: float = 120.0) -> None:
        self._http_client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout=timeout))

    async def __aenter__(self) -> "StorageApi":
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: BaseException | None, exc_tb: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self._http_client.aclose()

    async def upload(self, presigned_url: str, image_file: ImageFile) -> None:
        """
        PUTs the raw file bytes to the presigned target.

        :param presigned_url: Single-use upload URL from the presign step
        :param image_file: File to transfer
        :raises NetworkError: On connection/timeout errors
        :raises APIError: On a non-2xx response
        """
        content_type = normalize_content_type(image_file.content_type)
        logger.debug(f'PUT {image_file.size} bytes ({content_type}) to presigned target')
        try:
            response = await self._http_client.put(
                presigned_url,
                content=image_file.data,
                headers={'Content-Type': content_type}
            )
        except httpx.TimeoutException as e:
            raise NetworkError(f"Upload timed out: {e}")
        except httpx.RequestError as e:
            raise NetworkError(f"Network error: {e}")

        if not response.is_success:
            raise APIError(
                f"HTTP {response.status_code}: {response.text}",
                status_code=response.status_code,
                body=response.text
            )
