import logging
import os
import zipfile
from collections import namedtuple

from androguard.core.apk import APK
from androguard.util import set_log
from scriptworker.utils import get_hash

from pushplayscript.exceptions import LocalFileError

log = logging.getLogger(__name__)

# androguard logs through loguru, which scriptworker's logging setup doesn't reach
set_log("WARNING")

ApkMetadata = namedtuple("ApkMetadata", ("package_name", "version_code", "min_sdk_version"))


def get_apk_metadata(apk_path):
    """Read the package name, version code and minSdkVersion out of an APK.

    This only looks at the binary AndroidManifest.xml inside the archive; no network call is made.

    Args:
        apk_path (str): the path to the APK.

    Returns:
        ApkMetadata: the metadata of the APK.

    Raises:
        LocalFileError: if the file can't be read or isn't a valid APK.

    """
    try:
        apk = APK(apk_path)
    except (OSError, zipfile.BadZipFile, ValueError, KeyError) as e:
        raise LocalFileError(apk_path, "not a valid APK ({})".format(e)) from e

    if not apk.is_valid_APK():
        raise LocalFileError(apk_path, "no parseable AndroidManifest.xml found")

    version_code = apk.get_androidversion_code()
    try:
        version_code = int(version_code)
    except (TypeError, ValueError) as e:
        raise LocalFileError(apk_path, 'invalid versionCode "{}"'.format(version_code)) from e

    return ApkMetadata(
        package_name=apk.get_package(),
        version_code=version_code,
        min_sdk_version=apk.get_min_sdk_version(),
    )


def get_apk_sha1(apk_path):
    try:
        return get_hash(apk_path, "sha1").lower()
    except OSError as e:
        raise LocalFileError(apk_path, e.strerror or str(e)) from e


def get_file_size(path):
    try:
        return os.path.getsize(path)
    except OSError as e:
        raise LocalFileError(path, e.strerror or str(e)) from e
