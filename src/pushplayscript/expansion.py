import logging
import os
from collections import namedtuple

from pushplayscript.googleplay import EXPANSION_FILE_TYPE_MAIN, EXPANSION_FILE_TYPE_PATCH, EXPANSION_FILE_TYPES

log = logging.getLogger(__name__)

ExpansionFileSet = namedtuple("ExpansionFileSet", ("main_file", "patch_file"), defaults=(None, None))

_NOT_FETCHED = object()


class ExpansionFileResolver:
    """Decide which expansion files (OBBs) the newly uploaded APKs get.

    An APK either gets the OBB given for it, or, if ``use_previous_if_missing`` is set, a
    reference to the OBB of the most recent APK that was on Google Play before this run.

    Args:
        edit (EditSession): the open edit the APKs were uploaded in.
        existing_version_codes (list of int): version codes already on Google Play before this run.
        use_previous_if_missing (bool): whether to reuse older OBBs for APKs that have none.

    """

    def __init__(self, edit, existing_version_codes, use_previous_if_missing):
        self._edit = edit
        self._existing_version_codes = sorted(existing_version_codes, reverse=True)
        self.use_previous_if_missing = use_previous_if_missing
        self._latest_version_codes = {expansion_file_type: _NOT_FETCHED for expansion_file_type in EXPANSION_FILE_TYPES}

    def apply_file_set(self, version_code, file_set=None):
        file_set = file_set or ExpansionFileSet()
        log.info("Handling expansion files for versionCode {}".format(version_code))
        return {
            EXPANSION_FILE_TYPE_MAIN: self.apply(version_code, EXPANSION_FILE_TYPE_MAIN, file_set.main_file),
            EXPANSION_FILE_TYPE_PATCH: self.apply(version_code, EXPANSION_FILE_TYPE_PATCH, file_set.patch_file),
        }

    def apply(self, version_code, expansion_file_type, file_path=None):
        """Apply an expansion file of the given type to ``version_code``.

        Returns:
            bool: whether an expansion file was uploaded or referenced.

        """
        if file_path is not None:
            log.info("- Uploading new {} expansion file: {}".format(expansion_file_type, os.path.basename(file_path)))
            self._edit.upload_expansion_file(version_code, expansion_file_type, file_path)
            return True

        if not self.use_previous_if_missing:
            log.info("- No {} expansion file to apply".format(expansion_file_type))
            return False

        latest_version_code = self.get_latest_version_code_with_expansion_file(expansion_file_type)
        if latest_version_code is None:
            log.info(
                "- No {0} expansion file to apply, and no existing APK with a {0} expansion file was found".format(expansion_file_type)
            )
            return False

        log.info("- Applying {} expansion file from previous APK: {}".format(expansion_file_type, latest_version_code))
        self._edit.update_expansion_file(version_code, expansion_file_type, latest_version_code)
        return True

    def get_latest_version_code_with_expansion_file(self, expansion_file_type):
        """Find the newest pre-existing version code which holds an expansion file of this type.

        The lookup hits Google Play once per type and per run; later calls are served from cache.

        Returns:
            int: the version code whose expansion file actually holds the content. If the newest
                match is itself a reference, the referenced version code is returned. None if no
                pre-existing APK has such an expansion file.

        """
        latest_version_code = self._latest_version_codes[expansion_file_type]
        if latest_version_code is _NOT_FETCHED:
            latest_version_code = self._fetch_latest_version_code(expansion_file_type)
            self._latest_version_codes[expansion_file_type] = latest_version_code
        return latest_version_code

    def _fetch_latest_version_code(self, expansion_file_type):
        for version_code in self._existing_version_codes:
            expansion_file = self._edit.get_expansion_file(version_code, expansion_file_type)
            if expansion_file is None:
                continue
            if int(expansion_file.get("fileSize") or 0) > 0:
                return version_code
            if int(expansion_file.get("referencesVersion") or 0) > 0:
                return int(expansion_file["referencesVersion"])

        return None
