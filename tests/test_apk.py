import hashlib
import zipfile

import pytest

from pushplayscript import apk
from pushplayscript.apk import ApkMetadata, get_apk_metadata, get_apk_sha1, get_file_size
from pushplayscript.exceptions import LocalFileError


class FakeAPK:
    def __init__(self, path, valid=True, version_code="42"):
        self.path = path
        self.valid = valid
        self.version_code = version_code

    def is_valid_APK(self):
        return self.valid

    def get_package(self):
        return "org.example.app"

    def get_androidversion_code(self):
        return self.version_code

    def get_min_sdk_version(self):
        return "21"


def test_get_apk_metadata(monkeypatch):
    monkeypatch.setattr(apk, "APK", FakeAPK)
    assert get_apk_metadata("/some/app.apk") == ApkMetadata(package_name="org.example.app", version_code=42, min_sdk_version="21")


def test_get_apk_metadata_invalid_manifest(monkeypatch):
    monkeypatch.setattr(apk, "APK", lambda path: FakeAPK(path, valid=False))
    with pytest.raises(LocalFileError):
        get_apk_metadata("/some/app.apk")


@pytest.mark.parametrize("version_code", (None, "not-a-number"))
def test_get_apk_metadata_invalid_version_code(monkeypatch, version_code):
    monkeypatch.setattr(apk, "APK", lambda path: FakeAPK(path, version_code=version_code))
    with pytest.raises(LocalFileError):
        get_apk_metadata("/some/app.apk")


def test_get_apk_metadata_missing_file(tmp_path):
    with pytest.raises(LocalFileError):
        get_apk_metadata(str(tmp_path / "missing.apk"))


def test_get_apk_sha1(tmp_path):
    path = tmp_path / "app.apk"
    path.write_bytes(b"some APK content")
    assert get_apk_sha1(str(path)) == hashlib.sha1(b"some APK content").hexdigest()


def test_get_apk_sha1_missing_file(tmp_path):
    with pytest.raises(LocalFileError):
        get_apk_sha1(str(tmp_path / "missing.apk"))


def test_get_file_size(tmp_path):
    empty = tmp_path / "empty.txt"
    empty.write_bytes(b"")
    full = tmp_path / "mapping.txt"
    full.write_bytes(b"a -> b\n")
    assert get_file_size(str(empty)) == 0
    assert get_file_size(str(full)) == 7
    with pytest.raises(LocalFileError):
        get_file_size(str(tmp_path / "missing.txt"))


def test_get_apk_metadata_does_not_log_androguard_debug_lines(tmp_path, capfd):
    path = tmp_path / "broken-manifest.apk"
    with zipfile.ZipFile(str(path), "w") as apk_zip:
        apk_zip.writestr("AndroidManifest.xml", b"not a binary XML")
        apk_zip.writestr("classes.dex", b"dex")

    with pytest.raises(LocalFileError):
        get_apk_metadata(str(path))

    _, err = capfd.readouterr()
    assert [line for line in err.splitlines() if "DEBUG" in line] == []
    assert [line for line in err.splitlines() if "| INFO" in line] == []
