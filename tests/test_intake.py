import pytest

from geneguard.intake import (
    InvalidUploadError,
    read_variant_file,
    sanitize_filename,
    validate_upload,
)


@pytest.mark.parametrize("filename", ["sample.vcf", "sample.txt"])
def test_allowed_extensions(filename):
    validate_upload(filename)


def test_plain_text_content_type_allows_any_name():
    validate_upload("upload.dat", content_type="text/plain")


def test_rejects_other_types():
    with pytest.raises(InvalidUploadError, match="Only .vcf and .txt"):
        validate_upload("variants.csv", content_type="text/csv")


def test_rejects_oversized_upload():
    with pytest.raises(InvalidUploadError, match="too large"):
        validate_upload("sample.vcf", size=11, max_bytes=10)


def test_read_variant_file(vcf_file, sample_vcf):
    assert read_variant_file(vcf_file) == sample_vcf


def test_read_rejects_large_file(vcf_file):
    with pytest.raises(InvalidUploadError):
        read_variant_file(vcf_file, max_bytes=10)


def test_read_rejects_wrong_extension(tmp_path):
    path = tmp_path / "variants.bam"
    path.write_bytes(b"binary")
    with pytest.raises(InvalidUploadError):
        read_variant_file(path)


def test_read_replaces_invalid_utf8(tmp_path):
    path = tmp_path / "broken.vcf"
    path.write_bytes(b"chr1\t100\t\xff\n")
    assert read_variant_file(path) == "chr1\t100\t\ufffd\n"


def test_read_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_variant_file(tmp_path / "absent.vcf")


def test_sanitize_filename():
    assert sanitize_filename("my  sample file.vcf") == "my_sample_file.vcf"
