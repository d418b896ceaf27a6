"""
Tests for MemoryStorageAdapter.
"""

import pytest

from stowage.adapters import MemoryStorageAdapter
from stowage.faults import FileNotFoundFault, InvalidKeyFault, StorageValidationFault
from stowage.types import DownloadOptions, ListOptions, StorageFile, UploadOptions


async def fill(adapter, *keys):
    for key in keys:
        await adapter.upload(StorageFile(filename=key, content=key.encode()), UploadOptions(key=key))


class TestMemoryUpload:

    @pytest.mark.asyncio
    async def test_round_trip(self, memory_adapter):
        content = b"\x00binary\xffpayload"
        uploaded = await memory_adapter.upload(StorageFile("blob.bin", content))

        downloaded = await memory_adapter.download(uploaded.key)

        assert downloaded.success
        assert downloaded.content == content

    @pytest.mark.asyncio
    async def test_generated_key_keeps_extension(self, memory_adapter, sample_file):
        response = await memory_adapter.upload(sample_file)
        assert response.key.startswith("FILE_")
        assert response.key.endswith(".txt")
        assert response.url == f"memory://{response.key}"
        assert response.size == len(sample_file.content)

    @pytest.mark.asyncio
    async def test_explicit_key_and_public_url(self, memory_adapter, sample_file):
        response = await memory_adapter.upload(sample_file, UploadOptions(key="docs/r.txt", public=True))
        assert response.key == "docs/r.txt"
        assert response.public_url == "memory://docs/r.txt"

    @pytest.mark.asyncio
    async def test_metadata_echoed(self, memory_adapter):
        file = StorageFile("a.png", b"png", "image/png", metadata={"owner": "u1"})
        response = await memory_adapter.upload(file)
        assert response.metadata == {"filename": "a.png", "mime_type": "image/png", "owner": "u1"}

    @pytest.mark.asyncio
    async def test_invalid_key_rejected(self, memory_adapter, sample_file):
        with pytest.raises(InvalidKeyFault):
            await memory_adapter.upload(sample_file, UploadOptions(key="/absolute"))

    @pytest.mark.asyncio
    async def test_overwrite(self, memory_adapter):
        await memory_adapter.upload(StorageFile("a", b"one"), UploadOptions(key="k"))
        await memory_adapter.upload(StorageFile("a", b"two"), UploadOptions(key="k"))
        assert (await memory_adapter.download("k")).content == b"two"
        assert len(memory_adapter) == 1


class TestMemoryReadDelete:

    @pytest.mark.asyncio
    async def test_download_missing(self, memory_adapter):
        with pytest.raises(FileNotFoundFault) as exc_info:
            await memory_adapter.download("nope")
        assert exc_info.value.code == "FILE_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_signed_url_only_when_requested(self, memory_adapter):
        await fill(memory_adapter, "a.txt")
        assert (await memory_adapter.download("a.txt")).signed_url is None
        signed = await memory_adapter.download("a.txt", DownloadOptions(expires_in=300))
        assert signed.signed_url == "memory://a.txt?expires_in=300"

    @pytest.mark.asyncio
    async def test_get_describes_object(self, memory_adapter):
        await memory_adapter.upload(StorageFile("a.json", b"{}", "application/json"), UploadOptions(key="a.json"))
        response = await memory_adapter.get("a.json")
        obj = response.object
        assert obj.key == "a.json"
        assert obj.size == 2
        assert obj.content_type == "application/json"
        assert obj.last_modified is not None
        assert obj.etag

    @pytest.mark.asyncio
    async def test_get_missing(self, memory_adapter):
        with pytest.raises(FileNotFoundFault):
            await memory_adapter.get("nope")

    @pytest.mark.asyncio
    async def test_delete(self, memory_adapter):
        await fill(memory_adapter, "a")
        response = await memory_adapter.delete("a")
        assert response.success and response.key == "a"
        assert (await memory_adapter.exists("a")).exists is False

    @pytest.mark.asyncio
    async def test_delete_missing(self, memory_adapter):
        with pytest.raises(FileNotFoundFault):
            await memory_adapter.delete("nope")


class TestMemoryList:

    @pytest.mark.asyncio
    async def test_prefix_filter_sorted(self, memory_adapter):
        await fill(memory_adapter, "img/b.png", "doc/x.txt", "img/a.png")
        response = await memory_adapter.list(ListOptions(prefix="img/"))
        assert [o.key for o in response.result.objects] == ["img/a.png", "img/b.png"]
        assert response.result.has_more is False

    @pytest.mark.asyncio
    async def test_pagination_with_continuation_token(self, memory_adapter):
        await fill(memory_adapter, "a", "b", "c", "d", "e")

        first = await memory_adapter.list(ListOptions(max_keys=3))
        assert len(first.result.objects) == 3
        assert first.result.has_more is True
        assert first.result.next_continuation_token

        second = await memory_adapter.list(
            ListOptions(max_keys=3, continuation_token=first.result.next_continuation_token)
        )
        assert [o.key for o in second.result.objects] == ["d", "e"]
        assert second.result.has_more is False
        assert second.result.next_continuation_token is None

    @pytest.mark.asyncio
    async def test_zero_max_keys_lists_everything(self, memory_adapter):
        await fill(memory_adapter, "a", "b")

        response = await memory_adapter.list(ListOptions(max_keys=0))
        assert [o.key for o in response.result.objects] == ["a", "b"]
        assert response.result.has_more is False
        assert response.result.next_continuation_token is None

    @pytest.mark.asyncio
    async def test_malformed_token(self, memory_adapter):
        with pytest.raises(StorageValidationFault):
            await memory_adapter.list(ListOptions(continuation_token="abc"))

    @pytest.mark.asyncio
    async def test_empty(self):
        adapter = MemoryStorageAdapter("scratch")
        response = await adapter.list()
        assert response.result.objects == []
        assert adapter.name == "scratch"
