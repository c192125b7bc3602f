import json
import logging
import socket

import google_auth_httplib2
import httplib2
from google.auth.exceptions import GoogleAuthError, RefreshError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaFileUpload, set_user_agent

from pushplayscript.exceptions import ApiError, AuthenticationError, EditStateError, LocalFileError, NetworkTimeoutError

log = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/androidpublisher"]
DEFAULT_REQUEST_TIMEOUT_SECONDS = 300

APK_MIME_TYPE = "application/vnd.android.package-archive"
OCTET_STREAM_MIME_TYPE = "application/octet-stream"

DEOBFUSCATION_FILE_TYPE_PROGUARD = "proguard"
EXPANSION_FILE_TYPE_MAIN = "main"
EXPANSION_FILE_TYPE_PATCH = "patch"
EXPANSION_FILE_TYPES = (EXPANSION_FILE_TYPE_MAIN, EXPANSION_FILE_TYPE_PATCH)

STATE_UNOPENED = "unopened"
STATE_OPEN = "open"
STATE_COMMITTED = "committed"


def connect(credentials_file, user_agent, timeout=DEFAULT_REQUEST_TIMEOUT_SECONDS):
    """Build a Google Play Developer Publishing API (v3) service.

    Args:
        credentials_file (str): path to the JSON key of a Google service account.
        user_agent (str): how this client identifies itself to Google Play.
        timeout (int): socket timeout of each request, in seconds.

    Returns:
        googleapiclient.discovery.Resource: the ``androidpublisher`` service.

    Raises:
        AuthenticationError: if the service account key can't be loaded.

    """
    try:
        credentials = service_account.Credentials.from_service_account_file(credentials_file, scopes=SCOPES)
    except (OSError, ValueError, GoogleAuthError) as e:
        raise AuthenticationError('Could not load Google service account credentials from "{}": {}'.format(credentials_file, e)) from e

    log.info("Authenticating to Google Play API as {}".format(credentials.service_account_email))
    http = set_user_agent(httplib2.Http(timeout=timeout), user_agent)
    authorized_http = google_auth_httplib2.AuthorizedHttp(credentials, http=http)
    return build("androidpublisher", "v3", http=authorized_http, cache_discovery=False)


def _extract_error_messages(http_error):
    try:
        content = json.loads(http_error.content.decode("utf-8"))
    except (AttributeError, UnicodeDecodeError, ValueError):
        return [http_error.reason] if getattr(http_error, "reason", None) else []

    error = content.get("error", {}) if isinstance(content, dict) else {}
    messages = [detail["message"] for detail in error.get("errors", []) if detail.get("message")]
    if not messages and error.get("message"):
        messages = [error["message"]]
    return messages


class EditSession:
    """One Google Play "edit", i.e.: a transaction on the store listing of one application.

    Every call goes through the same edit id. An edit goes from "unopened" to "open" to
    "committed", never backwards. Looking at the state of Google Play after an edit was
    committed requires a new ``EditSession``.
    """

    def __init__(self, service, application_id):
        self._edits = service.edits()
        self.application_id = application_id
        self.edit_id = None
        self.state = STATE_UNOPENED

    def _execute(self, request, action):
        try:
            return request.execute()
        except RefreshError as e:
            raise AuthenticationError("Google Play credentials were rejected during {}: {}".format(action, e)) from e
        except HttpError as e:
            status_code = e.resp.status
            messages = _extract_error_messages(e)
            if status_code == 401:
                raise AuthenticationError(
                    "Google Play credentials were rejected during {}: {}".format(action, ", ".join(messages) or e)
                ) from e
            raise ApiError(status_code, messages, action=action) from e

    def _ensure_open(self, action):
        if self.state != STATE_OPEN:
            raise EditStateError('Cannot {}: edit "{}" is {}'.format(action, self.edit_id, self.state))

    def open(self):
        if self.state != STATE_UNOPENED:
            raise EditStateError('Edit "{}" was already opened. Start a new session instead'.format(self.edit_id))

        edit = self._execute(self._edits.insert(body={}, packageName=self.application_id), "opening an edit")
        self.edit_id = edit["id"]
        self.state = STATE_OPEN
        log.debug('Opened edit "{}" for "{}"'.format(self.edit_id, self.application_id))
        return self.edit_id

    def list_apks(self):
        self._ensure_open("list APKs")
        response = self._execute(
            self._edits.apks().list(packageName=self.application_id, editId=self.edit_id),
            "listing existing APKs",
        )
        # Google Play omits "apks" entirely when there are none
        return response.get("apks") or []

    def upload_apk(self, apk_path):
        self._ensure_open("upload an APK")
        media = _media(apk_path, APK_MIME_TYPE)
        apk = self._execute(
            self._edits.apks().upload(packageName=self.application_id, editId=self.edit_id, media_body=media),
            'uploading "{}"'.format(apk_path),
        )
        return apk["versionCode"]

    def upload_deobfuscation_file(self, version_code, mapping_path):
        self._ensure_open("upload a mapping file")
        media = _media(mapping_path, OCTET_STREAM_MIME_TYPE)
        return self._execute(
            self._edits.deobfuscationfiles().upload(
                packageName=self.application_id,
                editId=self.edit_id,
                apkVersionCode=version_code,
                deobfuscationFileType=DEOBFUSCATION_FILE_TYPE_PROGUARD,
                media_body=media,
            ),
            "uploading the mapping file of versionCode {}".format(version_code),
        )

    def get_expansion_file(self, version_code, expansion_file_type):
        """Fetch the expansion file of the given type that a version code has.

        Returns:
            dict: the ``ExpansionFile`` resource, or None if there is no such file.

        """
        self._ensure_open("get an expansion file")
        try:
            return self._execute(
                self._edits.expansionfiles().get(
                    packageName=self.application_id,
                    editId=self.edit_id,
                    apkVersionCode=version_code,
                    expansionFileType=expansion_file_type,
                ),
                "getting the {} expansion file of versionCode {}".format(expansion_file_type, version_code),
            )
        except ApiError as e:
            if e.status_code == 404:
                return None
            raise

    def upload_expansion_file(self, version_code, expansion_file_type, file_path):
        self._ensure_open("upload an expansion file")
        media = _media(file_path, OCTET_STREAM_MIME_TYPE)
        return self._execute(
            self._edits.expansionfiles().upload(
                packageName=self.application_id,
                editId=self.edit_id,
                apkVersionCode=version_code,
                expansionFileType=expansion_file_type,
                media_body=media,
            ),
            "uploading the {} expansion file of versionCode {}".format(expansion_file_type, version_code),
        )

    def update_expansion_file(self, version_code, expansion_file_type, references_version):
        self._ensure_open("update an expansion file")
        return self._execute(
            self._edits.expansionfiles().update(
                packageName=self.application_id,
                editId=self.edit_id,
                apkVersionCode=version_code,
                expansionFileType=expansion_file_type,
                body={"referencesVersion": references_version},
            ),
            "pointing versionCode {} to the {} expansion file of versionCode {}".format(version_code, expansion_file_type, references_version),
        )

    def update_track(self, track, release):
        self._ensure_open("update a track")
        return self._execute(
            self._edits.tracks().update(
                packageName=self.application_id,
                editId=self.edit_id,
                track=track,
                body={"track": track, "releases": [release]},
            ),
            'assigning APKs to the "{}" track'.format(track),
        )

    def commit(self):
        """Commit every change staged in this edit.

        Raises:
            NetworkTimeoutError: if Google Play didn't answer in time. The changes may still have
                been applied.

        """
        self._ensure_open("commit")
        try:
            self._execute(
                self._edits.commit(packageName=self.application_id, editId=self.edit_id),
                'committing edit "{}"'.format(self.edit_id),
            )
        except socket.timeout as e:
            raise NetworkTimeoutError('Timed out while committing edit "{}": {}'.format(self.edit_id, e)) from e
        self.state = STATE_COMMITTED


def _media(path, mimetype):
    try:
        return MediaFileUpload(path, mimetype=mimetype, resumable=True)
    except OSError as e:
        raise LocalFileError(path, e.strerror or str(e)) from e
