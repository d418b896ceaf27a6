"""
Tests for stowage.utils helpers.
"""

import re

import pytest

from stowage.faults import StorageValidationFault
from stowage.types import StorageFile, UploadOptions
from stowage.utils import (
    format_size,
    generate_key,
    get_file_extension,
    get_mime_type,
    is_valid_key,
    normalize_path,
    paginate,
    sanitize_filename,
    upload_metadata,
)


class TestKeys:

    def test_generate_key_format(self):
        key = generate_key()
        assert re.fullmatch(r"FILE_\d+_[A-Z0-9]{8}", key)

    def test_generate_key_prefix_and_extension(self):
        key = generate_key("IMG", "png")
        assert key.startswith("IMG_")
        assert key.endswith(".png")

    def test_generate_key_unique(self):
        assert len({generate_key() for _ in range(50)}) == 50

    def test_is_valid_key(self):
        assert is_valid_key("a/b.txt")
        assert not is_valid_key("")
        assert not is_valid_key("/a")
        assert not is_valid_key("a/")
        assert not is_valid_key("a//b")


class TestFilenames:

    def test_sanitize(self):
        assert sanitize_filename("my report (final).pdf") == "my_report_final_.pdf"

    def test_normalize_path(self):
        assert normalize_path("a\\b//c") == "a/b/c"

    def test_extension(self):
        assert get_file_extension("a.tar.gz") == "gz"
        assert get_file_extension("README") == ""
        assert get_file_extension(".bashrc") == ""

    def test_mime_type(self):
        assert get_mime_type("photo.webp") == "image/webp"
        assert get_mime_type("notes.txt") == "text/plain"
        assert get_mime_type("blob") == "application/octet-stream"

    def test_format_size(self):
        assert format_size(512) == "512.00 B"
        assert format_size(1536) == "1.50 KB"
        assert format_size(5 * 1024 ** 3) == "5.00 GB"


class TestPaginate:

    def test_single_page(self):
        assert paginate([1, 2, 3], None, None) == ([1, 2, 3], None)

    def test_pages(self):
        page, token = paginate(list("abcde"), 2, None)
        assert page == ["a", "b"] and token == "2"
        page, token = paginate(list("abcde"), 2, token)
        assert page == ["c", "d"] and token == "4"
        page, token = paginate(list("abcde"), 2, token)
        assert page == ["e"] and token is None

    def test_zero_max_keys_means_no_cap(self):
        assert paginate(list("abc"), 0, None) == (["a", "b", "c"], None)
        assert paginate(list("abc"), -1, None) == (["a", "b", "c"], None)

    def test_zero_max_keys_with_token_finishes(self):
        assert paginate(list("abc"), 0, "1") == (["b", "c"], None)

    def test_bad_token(self):
        with pytest.raises(StorageValidationFault):
            paginate([1], 1, "x")


class TestUploadMetadata:

    def test_merges_sources(self):
        file = StorageFile("a.txt", b"x", "text/plain", metadata={"owner": "u"})
        options = UploadOptions(metadata={"correlation_id": "c1"})
        assert upload_metadata(file, options) == {
            "correlation_id": "c1",
            "filename": "a.txt",
            "mime_type": "text/plain",
            "owner": "u",
        }
