import pytest

from jobportal.errors import PayloadTooLarge, UnsupportedMediaType, ValidationFailed
from jobportal.services.upload_validator import UploadPolicy, normalize_content_type, validate_upload

MIB = 1024 * 1024
DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def test_resume_accepts_exactly_ten_mebibytes():
    assert validate_upload(UploadPolicy(), "resume", 10 * MIB, "application/pdf") == "application/pdf"


def test_resume_rejects_one_byte_over_limit():
    with pytest.raises(PayloadTooLarge) as excinfo:
        validate_upload(UploadPolicy(), "resume", 10 * MIB + 1, "application/pdf")
    assert "10MB" in excinfo.value.message


@pytest.mark.parametrize("content_type", ["application/pdf", "application/msword", DOCX, "text/plain"])
def test_document_allow_list(content_type):
    assert validate_upload(UploadPolicy(), "cover_letter", 1024, content_type) == content_type


def test_mime_outside_allow_list_is_rejected_regardless_of_filename():
    with pytest.raises(UnsupportedMediaType) as excinfo:
        validate_upload(UploadPolicy(), "resume", 1024, "application/x-msdownload")
    assert "application/x-msdownload" in excinfo.value.message


def test_missing_content_type_is_rejected():
    with pytest.raises(UnsupportedMediaType):
        validate_upload(UploadPolicy(), "resume", 10, None)


def test_content_type_parameters_and_case_are_ignored():
    assert normalize_content_type("Text/Plain; charset=UTF-8") == "text/plain"
    assert validate_upload(UploadPolicy(), "resume", 10, "Text/Plain; charset=UTF-8") == "text/plain"


def test_avatar_limits():
    policy = UploadPolicy()
    assert validate_upload(policy, "avatar", 5 * MIB, "image/png") == "image/png"
    with pytest.raises(PayloadTooLarge):
        validate_upload(policy, "avatar", 5 * MIB + 1, "image/webp")
    with pytest.raises(UnsupportedMediaType):
        validate_upload(policy, "avatar", 100, "application/pdf")


def test_documents_cannot_be_images():
    with pytest.raises(UnsupportedMediaType):
        validate_upload(UploadPolicy(), "resume", 100, "image/jpeg")


def test_policy_is_configurable():
    policy = UploadPolicy(document_max_bytes=100)
    with pytest.raises(PayloadTooLarge):
        validate_upload(policy, "resume", 101, "application/pdf")


def test_unknown_category():
    with pytest.raises(ValidationFailed):
        validate_upload(UploadPolicy(), "portfolio", 1, "application/pdf")
