import enum
import logging
import os

from pushplayscript import apk
from pushplayscript.exceptions import NetworkTimeoutError
from pushplayscript.expansion import ExpansionFileResolver
from pushplayscript.googleplay import EditSession
from pushplayscript.release import build_release

log = logging.getLogger(__name__)


class UploadOutcome(enum.Enum):
    SUCCEEDED = "succeeded"
    # One of the APKs is already on Google Play, so nothing was uploaded
    ALREADY_EXISTS = "already-exists"
    # Committing timed out and Google Play doesn't show the uploaded APKs
    NOT_APPLIED = "not-applied"


class ApkUploadTask:
    """Upload APKs to Google Play, assign them to a track and commit the whole thing.

    A task instance is meant to be executed once. Nothing it learns about Google Play (existing
    APKs, expansion files) outlives it.

    Args:
        service: the ``androidpublisher`` service, as returned by ``googleplay.connect()``.
        application_id (str): the package name of the app on Google Play.
        apk_files (list of str): the APKs to upload, in upload order.
        apk_metadata (dict): APK path to the ``ApkMetadata`` already read from it. APKs missing
            from it are parsed on upload.
        apk_files_to_mapping_files (dict): APK path to ProGuard mapping file path.
        expansion_files (dict): version code to ``ExpansionFileSet``.
        use_previous_expansion_files_if_missing (bool): whether APKs without an expansion file
            reuse the one of the latest APK already on Google Play.
        track (str): the Google Play track to release to.
        rollout_fraction (float): the share of users to roll out to. Anything outside of (0, 1)
            means a complete release.
        release_notes (list of dict): ``LocalizedText`` objects, or None.
        work_dir (str): where the files live. Only used to log shorter file names.

    """

    def __init__(
        self,
        service,
        application_id,
        apk_files,
        apk_metadata=None,
        apk_files_to_mapping_files=None,
        expansion_files=None,
        use_previous_expansion_files_if_missing=False,
        track="production",
        rollout_fraction=1.0,
        release_notes=None,
        work_dir=None,
    ):
        self.service = service
        self.application_id = application_id
        self.apk_files = list(apk_files)
        self.apk_metadata = apk_metadata or {}
        self.apk_files_to_mapping_files = apk_files_to_mapping_files or {}
        self.expansion_files = expansion_files or {}
        self.use_previous_expansion_files_if_missing = use_previous_expansion_files_if_missing
        self.track = track
        self.rollout_fraction = rollout_fraction
        self.release_notes = release_notes
        self.work_dir = work_dir
        self.existing_version_codes = []
        self.uploaded_version_codes = []

    def execute(self):
        # Opening an edit is also how we find out that the credentials work
        log.info('Authenticating to Google Play API for application ID "{}"...'.format(self.application_id))
        edit = EditSession(self.service, self.application_id)
        edit.open()

        existing_apks = edit.list_apks()
        self.existing_version_codes = [int(existing_apk["versionCode"]) for existing_apk in existing_apks]
        existing_sha1_hashes = {
            existing_apk["binary"]["sha1"].lower() for existing_apk in existing_apks if existing_apk.get("binary", {}).get("sha1")
        }

        log.info('Uploading {} APK(s) with application ID "{}"'.format(len(self.apk_files), self.application_id))
        for apk_file in self.apk_files:
            metadata = self.apk_metadata.get(apk_file) or apk.get_apk_metadata(apk_file)
            apk_sha1_hash = apk.get_apk_sha1(apk_file)

            log.info("      APK file: {}".format(self._get_relative_file_name(apk_file)))
            log.info("    SHA-1 hash: {}".format(apk_sha1_hash))
            log.info("   versionCode: {}".format(metadata.version_code))
            log.info(" minSdkVersion: {}".format(metadata.min_sdk_version))

            if apk_sha1_hash in existing_sha1_hashes:
                log.warning("This APK already exists in the Google Play account; it cannot be uploaded again")
                return UploadOutcome.ALREADY_EXISTS

            version_code = int(edit.upload_apk(apk_file))
            self.uploaded_version_codes.append(version_code)

            mapping_file = self.apk_files_to_mapping_files.get(apk_file)
            if mapping_file is not None:
                self._upload_mapping_file(edit, version_code, mapping_file)

        if self.expansion_files or self.use_previous_expansion_files_if_missing:
            resolver = ExpansionFileResolver(edit, self.existing_version_codes, self.use_previous_expansion_files_if_missing)
            for version_code in self.uploaded_version_codes:
                resolver.apply_file_set(version_code, self.expansion_files.get(version_code))

        release = build_release(self.uploaded_version_codes, self.rollout_fraction, self.release_notes)
        log.info('Assigning versionCode(s) {} to the "{}" track (status: {})'.format(self.uploaded_version_codes, self.track, release["status"]))
        edit.update_track(self.track, release)

        log.info("Applying changes to Google Play...")
        try:
            edit.commit()
        except NetworkTimeoutError as e:
            # Google Play often times out on commit although it applied the changes
            log.warning("An error occurred while applying changes: {}".format(e))
            log.info("Checking whether the changes have been applied anyway...")
            if not self.were_apks_uploaded():
                log.warning("The APKs that were uploaded were not found on Google Play")
                log.warning("No changes have been applied to the Google Play account")
                return UploadOutcome.NOT_APPLIED

        log.info("Changes were successfully applied to Google Play")
        return UploadOutcome.SUCCEEDED

    def were_apks_uploaded(self):
        """Tell whether any APK uploaded by this task now shows up on Google Play.

        The previous edit can't be reused once committed (or abandoned), so this opens a new one
        just to read the current state. Nothing is committed again.
        """
        edit = EditSession(self.service, self.application_id)
        edit.open()
        current_version_codes = {int(current_apk["versionCode"]) for current_apk in edit.list_apks()}
        return not current_version_codes.isdisjoint(self.uploaded_version_codes)

    def _upload_mapping_file(self, edit, version_code, mapping_file):
        relative_file_name = self._get_relative_file_name(mapping_file)
        mapping_file_size = apk.get_file_size(mapping_file)
        log.info(" Mapping file size: {}".format(mapping_file_size))
        # Google Play rejects empty mapping files
        if mapping_file_size == 0:
            log.info(" Ignoring empty ProGuard mapping file: {}".format(relative_file_name))
            return

        log.info(" Uploading associated ProGuard mapping file: {}".format(relative_file_name))
        edit.upload_deobfuscation_file(version_code, mapping_file)

    def _get_relative_file_name(self, path):
        if not self.work_dir:
            return path
        work_dir = os.path.abspath(self.work_dir)
        absolute_path = os.path.abspath(path)
        if os.path.commonpath([work_dir, absolute_path]) == work_dir:
            return os.path.relpath(absolute_path, work_dir)
        return path
