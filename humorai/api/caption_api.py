from humorai.api.base_api import BaseApi
from humorai.models.caption import Caption
from humorai.utils.retry import with_retry

FEED_COLUMNS = 'id,content,created_datetime_utc,like_count,images(url)'


class CaptionApi(BaseApi):
    """Read access to the `captions` table of the data store."""

    async def get_recent_captions(self, limit: int = 20) -> list[Caption]:
        """
        Gets the newest captions that have an image, with the image URL joined in.

        :param limit: Maximum number of captions
        :return: Captions, newest first
        """
        json_response = await with_retry(
            self._client.get,
            '/captions',
            query_params={
                'select': FEED_COLUMNS,
                'image_id': 'not.is.null',
                'order': 'created_datetime_utc.desc',
                'limit': limit,
            }
        )
        return [Caption(**row) for row in json_response or []]
