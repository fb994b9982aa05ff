"""Tests for API classes."""
import httpx
import pytest
import respx
from httpx import Response
from unittest.mock import AsyncMock, MagicMock

from humorai.api.caption_api import CaptionApi
from humorai.api.pipeline_api import PipelineApi, normalize_captions_response
from humorai.api.storage_api import StorageApi
from humorai.api.vote_api import VoteApi
from humorai.client import Client
from humorai.exceptions import APIError, NetworkError, ValidationError, VoteMutationFailure
from humorai.models.pipeline import ImageFile

from tests.conftest import CDN_URL, DATA_STORE_URL, PRESIGNED_URL


class TestPipelineApi:
    """Tests for the PipelineApi class."""

    @pytest.fixture
    def mock_client(self):
        """Create a mock client with async methods."""
        client = MagicMock()
        client.post = AsyncMock()
        return client

    @pytest.fixture
    def pipeline_api(self, mock_client):
        return PipelineApi(mock_client)

    @pytest.mark.asyncio
    async def test_generate_presigned_url_returns_upload(self, pipeline_api, mock_client):
        """generate_presigned_url should parse both URLs."""
        mock_client.post.return_value = {'presignedUrl': PRESIGNED_URL, 'cdnUrl': CDN_URL}

        upload = await pipeline_api.generate_presigned_url('image/png', 'token-1')

        assert upload.presigned_url == PRESIGNED_URL
        assert upload.cdn_url == CDN_URL
        call_kwargs = mock_client.post.call_args.kwargs
        assert mock_client.post.call_args.args[0] == '/pipeline/generate-presigned-url'
        assert call_kwargs['data'] == {'contentType': 'image/png'}
        assert call_kwargs['headers'] == {'Authorization': 'Bearer token-1'}

    @pytest.mark.asyncio
    async def test_generate_presigned_url_normalizes_jpg(self, pipeline_api, mock_client):
        """image/jpg should be sent as image/jpeg."""
        mock_client.post.return_value = {'presignedUrl': PRESIGNED_URL, 'cdnUrl': CDN_URL}

        await pipeline_api.generate_presigned_url('image/jpg', 'token-1')

        assert mock_client.post.call_args.kwargs['data'] == {'contentType': 'image/jpeg'}

    @pytest.mark.asyncio
    async def test_generate_presigned_url_rejects_malformed_response(self, pipeline_api, mock_client):
        """A response without the expected fields should raise APIError."""
        mock_client.post.return_value = {'url': PRESIGNED_URL}

        with pytest.raises(APIError, match='PresignedUpload'):
            await pipeline_api.generate_presigned_url('image/png', 'token-1')

    @pytest.mark.asyncio
    async def test_upload_image_from_url_returns_image_id(self, pipeline_api, mock_client):
        """upload_image_from_url should send the CDN URL and return the image ID."""
        mock_client.post.return_value = {'imageId': 'image-789'}

        registered = await pipeline_api.upload_image_from_url(CDN_URL, 'token-1')

        assert registered.image_id == 'image-789'
        call_kwargs = mock_client.post.call_args.kwargs
        assert call_kwargs['data'] == {'imageUrl': CDN_URL, 'isCommonUse': False}
        assert call_kwargs['headers'] == {'Authorization': 'Bearer token-1'}

    @pytest.mark.asyncio
    async def test_generate_captions_accepts_bare_list(self, pipeline_api, mock_client, generated_captions_data):
        """generate_captions should accept a bare list."""
        mock_client.post.return_value = generated_captions_data

        captions = await pipeline_api.generate_captions('image-789', 'token-1')

        assert [c.content for c in captions] == ['First caption', 'Second caption']
        assert mock_client.post.call_args.kwargs['data'] == {'imageId': 'image-789'}

    @pytest.mark.asyncio
    async def test_generate_captions_accepts_wrapped_list(self, pipeline_api, mock_client, generated_captions_data):
        """generate_captions should accept {'captions': [...]}."""
        mock_client.post.return_value = {'captions': generated_captions_data}

        captions = await pipeline_api.generate_captions('image-789', 'token-1')

        assert [c.id for c in captions] == ['gen-1', 'gen-2']

    @pytest.mark.asyncio
    async def test_generate_captions_rejects_empty_image_id(self, pipeline_api):
        with pytest.raises(ValidationError):
            await pipeline_api.generate_captions('', 'token-1')


class TestNormalizeCaptionsResponse:
    """Tests for normalize_captions_response."""

    def test_missing_captions_key_gives_empty_list(self):
        assert normalize_captions_response({'status': 'ok'}) == []

    def test_null_response_gives_empty_list(self):
        assert normalize_captions_response(None) == []

    def test_extra_fields_preserved(self, generated_captions_data):
        captions = normalize_captions_response(generated_captions_data)
        assert captions[0].model_extra == {'humor_flavor_id': 3}


class TestStorageApi:
    """Tests for the StorageApi class."""

    @pytest.fixture
    def jpg_file(self):
        return ImageFile(name='photo.jpg', content_type='image/jpg', data=b'\xff\xd8\xff raw bytes')

    @pytest.mark.asyncio
    @respx.mock
    async def test_upload_puts_raw_bytes_without_credentials(self, jpg_file):
        """upload should PUT the bytes with the normalized content type and no Authorization."""
        route = respx.put(PRESIGNED_URL).mock(return_value=Response(200))

        async with StorageApi() as storage_api:
            await storage_api.upload(PRESIGNED_URL, jpg_file)

        request = route.calls.last.request
        assert request.content == b'\xff\xd8\xff raw bytes'
        assert request.headers['content-type'] == 'image/jpeg'
        assert 'authorization' not in request.headers
        assert 'apikey' not in request.headers

    @pytest.mark.asyncio
    @respx.mock
    async def test_upload_failure_raises_api_error(self, jpg_file):
        """A non-2xx response should raise APIError with the status code."""
        respx.put(PRESIGNED_URL).mock(return_value=Response(403, text='SignatureDoesNotMatch'))

        async with StorageApi() as storage_api:
            with pytest.raises(APIError) as exc_info:
                await storage_api.upload(PRESIGNED_URL, jpg_file)

        assert exc_info.value.status_code == 403
        assert exc_info.value.body == 'SignatureDoesNotMatch'

    @pytest.mark.asyncio
    @respx.mock
    async def test_upload_transport_failure_raises_network_error(self, jpg_file):
        respx.put(PRESIGNED_URL).mock(side_effect=httpx.ConnectError('refused'))

        async with StorageApi() as storage_api:
            with pytest.raises(NetworkError):
                await storage_api.upload(PRESIGNED_URL, jpg_file)


class TestCaptionApi:
    """Tests for the CaptionApi class."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_get_recent_captions_queries_feed(self, sample_caption_data):
        """get_recent_captions should filter, order and limit the captions query."""
        route = respx.get(f'{DATA_STORE_URL}/captions').mock(
            return_value=Response(200, json=[sample_caption_data])
        )

        async with Client(DATA_STORE_URL) as client:
            captions = await CaptionApi(client).get_recent_captions(limit=5)

        params = route.calls.last.request.url.params
        assert params['select'] == 'id,content,created_datetime_utc,like_count,images(url)'
        assert params['image_id'] == 'not.is.null'
        assert params['order'] == 'created_datetime_utc.desc'
        assert params['limit'] == '5'
        assert len(captions) == 1
        assert captions[0].image_url == 'https://cdn.example.test/cat.jpg'

    @pytest.mark.asyncio
    @respx.mock
    async def test_get_recent_captions_retries_network_errors(self, sample_caption_data):
        """The feed read should be retried after a network failure."""
        route = respx.get(f'{DATA_STORE_URL}/captions').mock(
            side_effect=[httpx.ConnectError('refused'), Response(200, json=[sample_caption_data])]
        )

        async with Client(DATA_STORE_URL) as client:
            captions = await CaptionApi(client).get_recent_captions()

        assert route.call_count == 2
        assert captions[0].id == 'caption-1'


class TestVoteApi:
    """Tests for the VoteApi class."""

    @pytest.fixture
    def mock_client(self):
        """Create a mock client with async methods."""
        client = MagicMock()
        client.get = AsyncMock()
        client.post = AsyncMock(return_value=None)
        client.patch = AsyncMock(return_value=None)
        client.delete = AsyncMock(return_value=None)
        return client

    @pytest.fixture
    def vote_api(self, mock_client):
        return VoteApi(mock_client)

    @pytest.mark.asyncio
    async def test_insert_vote_sends_record(self, vote_api, mock_client):
        """insert_vote should send the full vote record."""
        await vote_api.insert_vote('caption-1', 'user-123', 1)

        mock_client.post.assert_called_once()
        assert mock_client.post.call_args.args[0] == '/caption_votes'
        data = mock_client.post.call_args.kwargs['data']
        assert data['vote_value'] == 1
        assert data['profile_id'] == 'user-123'
        assert data['caption_id'] == 'caption-1'
        assert data['created_datetime_utc'] == data['modified_datetime_utc']
        assert mock_client.post.call_args.kwargs['headers'] == {'Prefer': 'return=minimal'}

    @pytest.mark.asyncio
    async def test_update_vote_filters_by_caption_and_voter(self, vote_api, mock_client):
        """update_vote should patch only the voter's record for the caption."""
        await vote_api.update_vote('caption-1', 'user-123', -1)

        call_kwargs = mock_client.patch.call_args.kwargs
        assert call_kwargs['query_params'] == {'caption_id': 'eq.caption-1', 'profile_id': 'eq.user-123'}
        assert call_kwargs['data']['vote_value'] == -1
        assert 'modified_datetime_utc' in call_kwargs['data']

    @pytest.mark.asyncio
    async def test_delete_vote_filters_by_caption_and_voter(self, vote_api, mock_client):
        await vote_api.delete_vote('caption-1', 'user-123')

        call_kwargs = mock_client.delete.call_args.kwargs
        assert call_kwargs['query_params'] == {'caption_id': 'eq.caption-1', 'profile_id': 'eq.user-123'}

    @pytest.mark.asyncio
    async def test_write_failure_raises_vote_mutation_failure(self, vote_api, mock_client):
        """Remote errors on writes should surface as VoteMutationFailure."""
        mock_client.post.side_effect = APIError('HTTP 409: duplicate key', status_code=409)

        with pytest.raises(VoteMutationFailure, match='duplicate key'):
            await vote_api.insert_vote('caption-1', 'user-123', 1)

    @pytest.mark.asyncio
    async def test_network_failure_raises_vote_mutation_failure(self, vote_api, mock_client):
        mock_client.delete.side_effect = NetworkError('Network error: refused')

        with pytest.raises(VoteMutationFailure):
            await vote_api.delete_vote('caption-1', 'user-123')

    @pytest.mark.asyncio
    async def test_insert_rejects_invalid_value(self, vote_api, mock_client):
        with pytest.raises(ValidationError):
            await vote_api.insert_vote('caption-1', 'user-123', 2)
        mock_client.post.assert_not_called()

    @pytest.mark.asyncio
    async def test_get_votes_for_captions_returns_map(self, vote_api, mock_client):
        """get_votes_for_captions should map caption IDs to vote values."""
        mock_client.get.return_value = [
            {'caption_id': 'caption-1', 'profile_id': 'user-123', 'vote_value': 1},
            {'caption_id': 'caption-3', 'profile_id': 'user-123', 'vote_value': -1},
        ]

        votes = await vote_api.get_votes_for_captions('user-123', ['caption-1', 'caption-2', 'caption-3'])

        assert votes == {'caption-1': 1, 'caption-3': -1}
        query_params = mock_client.get.call_args.kwargs['query_params']
        assert query_params['profile_id'] == 'eq.user-123'
        assert query_params['caption_id'] == 'in.(caption-1,caption-2,caption-3)'

    @pytest.mark.asyncio
    async def test_get_votes_for_no_captions_skips_request(self, vote_api, mock_client):
        assert await vote_api.get_votes_for_captions('user-123', []) == {}
        mock_client.get.assert_not_called()

    @pytest.mark.asyncio
    async def test_get_votes_for_captions_selects_vote_record(self, vote_api, mock_client):
        mock_client.get.return_value = []

        await vote_api.get_votes_for_captions('user-123', ['caption-1'])

        assert mock_client.get.call_args.kwargs['query_params']['select'] == 'caption_id,profile_id,vote_value'

    @pytest.mark.asyncio
    async def test_get_votes_for_captions_rejects_malformed_rows(self, vote_api, mock_client):
        """Rows that are not valid votes should raise APIError."""
        mock_client.get.return_value = [{'caption_id': 'caption-1', 'profile_id': 'user-123', 'vote_value': 0}]

        with pytest.raises(APIError, match='Unexpected vote rows'):
            await vote_api.get_votes_for_captions('user-123', ['caption-1'])
