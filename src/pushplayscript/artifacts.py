import logging
import os
import re
from collections import namedtuple

from scriptworker import artifacts
from scriptworker.exceptions import TaskVerificationError

from pushplayscript.expansion import ExpansionFileSet

log = logging.getLogger(__name__)

# Android names expansion files "[main|patch].<expansion-version>.<package-name>.obb"
_EXPANSION_FILE_PATTERN = re.compile(r"^(main|patch)\.([0-9]+)\..+\.obb$")
_MAPPING_FILE_NAME = "mapping.txt"

UploadFiles = namedtuple("UploadFiles", ("apk_files", "apk_files_to_mapping_files", "expansion_files"))


def get_upload_files(context):
    """Sort the upstream artifacts into APKs, ProGuard mapping files and expansion files.

    APKs keep the order of ``upstreamArtifacts``. A ``mapping.txt`` belongs to the APK produced
    by the same upstream task, which then must have produced a single APK.

    Returns:
        UploadFiles: the files to upload.

    Raises:
        TaskVerificationError: if no APK is given, if a mapping file can't be tied to a single
            APK, or if two expansion files of the same type target the same version code.

    """
    artifacts_per_task_id, _ = artifacts.get_upstream_artifacts_full_paths_per_task_id(context)

    apk_files = []
    apk_files_to_mapping_files = {}
    expansion_files = {}
    for task_id, paths in artifacts_per_task_id.items():
        task_apk_files = [path for path in paths if path.endswith(".apk")]
        mapping_files = [path for path in paths if os.path.basename(path) == _MAPPING_FILE_NAME]
        apk_files.extend(task_apk_files)

        if mapping_files:
            if len(task_apk_files) != 1 or len(mapping_files) != 1:
                raise TaskVerificationError(
                    'Task "{}" must provide exactly one APK to go with its mapping file. APKs: {}. Mapping files: {}'.format(
                        task_id, task_apk_files, mapping_files
                    )
                )
            apk_files_to_mapping_files[task_apk_files[0]] = mapping_files[0]

        for path in paths:
            _add_expansion_file(expansion_files, path)

    if not apk_files:
        raise TaskVerificationError("No upstream artifact is an APK")

    return UploadFiles(apk_files, apk_files_to_mapping_files, expansion_files)


def _add_expansion_file(expansion_files, path):
    match = _EXPANSION_FILE_PATTERN.match(os.path.basename(path))
    if not match:
        return

    expansion_file_type, version_code = match.group(1), int(match.group(2))
    field = "{}_file".format(expansion_file_type)
    file_set = expansion_files.get(version_code, ExpansionFileSet())
    if getattr(file_set, field) is not None:
        raise TaskVerificationError(
            "More than one {} expansion file given for versionCode {}: {}, {}".format(expansion_file_type, version_code, getattr(file_set, field), path)
        )
    expansion_files[version_code] = file_set._replace(**{field: path})
    log.info("Found {} expansion file for versionCode {}: {}".format(expansion_file_type, version_code, path))
