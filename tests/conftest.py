"""Shared fixtures for the HumorAI test suite."""
from io import BytesIO

import pytest
from PIL import Image

from humorai.models.pipeline import ImageFile, PresignedUpload, RegisteredImage
from humorai.models.session import Session
from humorai.session import StaticSessionProvider

API_BASE_URL = 'https://api.example.test'
DATA_STORE_URL = 'https://project.example.test/rest/v1'
PRESIGNED_URL = 'https://storage.example.test/uploads/abc123.jpg'
CDN_URL = 'https://cdn.example.test/abc123.jpg'


@pytest.fixture
def png_bytes():
    """A small real PNG image."""
    out = BytesIO()
    Image.new('RGB', (64, 48), color=(200, 30, 30)).save(out, 'png')
    return out.getvalue()


@pytest.fixture
def image_file(png_bytes):
    return ImageFile(name='cat.png', content_type='image/png', data=png_bytes)


@pytest.fixture
def session():
    return Session(user_id='user-123', access_token='test-access-token')


@pytest.fixture
def session_provider(session):
    return StaticSessionProvider(session)


@pytest.fixture
def signed_out_provider():
    return StaticSessionProvider()


@pytest.fixture
def presigned_upload():
    return PresignedUpload(presignedUrl=PRESIGNED_URL, cdnUrl=CDN_URL)


@pytest.fixture
def registered_image():
    return RegisteredImage(imageId='image-789')


@pytest.fixture
def sample_caption_data():
    return {
        'id': 'caption-1',
        'content': 'When the cat realizes it is Monday',
        'created_datetime_utc': '2025-02-11T18:22:05.123+00:00',
        'like_count': 4,
        'images': {'url': 'https://cdn.example.test/cat.jpg'},
    }


@pytest.fixture
def generated_captions_data():
    return [
        {'id': 'gen-1', 'content': 'First caption', 'humor_flavor_id': 3},
        {'id': 'gen-2', 'content': 'Second caption'},
    ]
