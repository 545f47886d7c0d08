"""
Unit Tests for the Attachment Store
"""
import base64

import pytest

from app.core.exceptions import StorageError
from app.services.attachment_store import (
    NOT_CONFIGURED_ERROR,
    AttachmentStore,
    decode_image_payload,
    sniff_image_type,
)

from conftest import PNG_BASE64
from mocks.mock_storage import MockStorageClient

PNG_BYTES = base64.b64decode(PNG_BASE64)


class TestSniffImageType:

    def test_png(self):
        assert sniff_image_type(PNG_BYTES) == 'image/png'

    def test_jpeg(self):
        assert sniff_image_type(b'\xff\xd8\xff\xe0' + b'\x00' * 16) == 'image/jpeg'

    def test_gif(self):
        assert sniff_image_type(b'GIF89a' + b'\x00' * 8) == 'image/gif'

    def test_webp(self):
        assert sniff_image_type(b'RIFF\x00\x00\x00\x00WEBPVP8 ') == 'image/webp'

    def test_unknown(self):
        assert sniff_image_type(b'%PDF-1.7') is None


class TestDecodeImagePayload:

    def test_raw_base64(self):
        data, mime = decode_image_payload(PNG_BASE64, max_bytes=1024)

        assert data == PNG_BYTES
        assert mime == 'image/png'

    def test_data_uri(self):
        data, mime = decode_image_payload(f'data:image/png;base64,{PNG_BASE64}', max_bytes=1024)

        assert data == PNG_BYTES
        assert mime == 'image/png'

    def test_declared_non_image_type_rejected(self):
        with pytest.raises(StorageError):
            decode_image_payload(f'data:application/pdf;base64,{PNG_BASE64}', max_bytes=1024)

    def test_invalid_base64_rejected(self):
        with pytest.raises(StorageError) as exc_info:
            decode_image_payload('***not base64***', max_bytes=1024)

        assert 'base64' in exc_info.value.message

    def test_oversized_rejected(self):
        with pytest.raises(StorageError) as exc_info:
            decode_image_payload(PNG_BASE64, max_bytes=16)

        assert 'limit' in exc_info.value.message

    def test_unrecognised_bytes_rejected(self):
        payload = base64.b64encode(b'just some text').decode()

        with pytest.raises(StorageError):
            decode_image_payload(payload, max_bytes=1024)


class TestAttachmentStore:

    async def test_not_configured(self):
        store = AttachmentStore(storage=None)

        result = await store.store(PNG_BASE64)

        assert result.success is False
        assert result.error == NOT_CONFIGURED_ERROR

    async def test_uploads_under_folder(self):
        storage = MockStorageClient()
        store = AttachmentStore(storage=storage, folder='ssg-innovoice', timeout_seconds=2)

        result = await store.store(f'data:image/png;base64,{PNG_BASE64}')

        assert result.success is True
        [(object_name, (data, content_type))] = storage.objects.items()
        assert object_name.startswith('ssg-innovoice/')
        assert object_name.endswith('.png')
        assert data == PNG_BYTES
        assert content_type == 'image/png'
        assert result.url == f'{storage.base_url}/{object_name}'

    async def test_bad_payload_reported_not_raised(self):
        store = AttachmentStore(storage=MockStorageClient(), timeout_seconds=2)

        result = await store.store('***')

        assert result.success is False
        assert result.url is None
        assert result.error

    async def test_storage_failure_reported_not_raised(self):
        storage = MockStorageClient()
        storage.error = RuntimeError('bucket unreachable')
        store = AttachmentStore(storage=storage, timeout_seconds=2)

        result = await store.store(PNG_BASE64)

        assert result.success is False
        assert result.error
