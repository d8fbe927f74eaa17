import pytest
from conftest import make_image_bytes

from photodesk.domain.entities.upload import UploadFile
from photodesk.domain.services.upload_policy import (
    FILE_INVALID_TYPE,
    FILE_TOO_LARGE,
    TOO_MANY_FILES,
    UploadPolicy,
    format_bytes,
)


@pytest.mark.parametrize(
    "size, expected",
    [(0, "0 Bytes"), (512, "512 Bytes"), (1536, "1.5 KB"), (10 * 1024 * 1024, "10 MB")],
)
def test_format_bytes(size, expected):
    assert format_bytes(size) == expected


def test_messages_follow_limits():
    policy = UploadPolicy(max_files=5, max_size=2 * 1024 * 1024)
    assert policy.reason_message(FILE_TOO_LARGE) == "File is too large. Max size is 2 MB."
    assert policy.reason_message(FILE_INVALID_TYPE) == "File type not accepted."
    assert policy.reason_message(TOO_MANY_FILES) == "Too many files. Maximum allowed is 5."


def test_type_is_sniffed_from_bytes():
    policy = UploadPolicy()
    jpeg = UploadFile("photo.jpg", make_image_bytes(format="JPEG"))
    fake = UploadFile("photo.jpg", b"definitely not an image")
    assert policy.check(jpeg) is None
    assert policy.check(fake) == FILE_INVALID_TYPE


def test_declared_non_image_type_is_rejected():
    policy = UploadPolicy()
    declared = UploadFile("doc.png", make_image_bytes(), content_type="application/pdf")
    assert policy.check(declared) == FILE_INVALID_TYPE


def test_size_limit():
    policy = UploadPolicy(max_size=100)
    assert policy.check(UploadFile("big.png", make_image_bytes(w=64, h=64, color=(1, 2, 3)) + b"\0" * 100)) == FILE_TOO_LARGE


def test_screen_reports_first_rejection():
    policy = UploadPolicy()
    files = [
        UploadFile("ok.png", make_image_bytes()),
        UploadFile("bad.txt", b"text", "text/plain"),
        UploadFile("huge.png", b"\0" * (policy.max_size + 1), "image/png"),
    ]
    result = policy.screen(files)
    assert [f.filename for f in result.accepted] == ["ok.png"]
    assert [r.code for r in result.rejected] == [FILE_INVALID_TYPE, FILE_TOO_LARGE]
    assert result.message == "File type not accepted."


def test_screen_rejects_everything_past_max_files():
    policy = UploadPolicy(max_files=2)
    result = policy.screen([UploadFile(f"{i}.png", make_image_bytes()) for i in range(3)])
    assert result.accepted == []
    assert {r.code for r in result.rejected} == {TOO_MANY_FILES}
