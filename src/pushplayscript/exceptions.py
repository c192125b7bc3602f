from scriptworker.constants import STATUSES
from scriptworker.exceptions import ScriptWorkerTaskException


class ConfigValidationError(ScriptWorkerTaskException):
    def __init__(self, msg):
        super().__init__(msg, exit_code=STATUSES["internal-error"])


class AuthenticationError(ScriptWorkerTaskException):
    def __init__(self, msg):
        super().__init__(msg, exit_code=STATUSES["internal-error"])


class ApiError(ScriptWorkerTaskException):
    """A non-2xx response from the Google Play Developer Publishing API.

    Attributes:
        status_code (int): the HTTP status returned by Google Play.
        messages (list of str): the error strings Google Play gave back, if any.

    """

    def __init__(self, status_code, messages, action="Google Play API request"):
        self.status_code = status_code
        self.messages = list(messages)
        super().__init__(
            "{} failed with HTTP {}: {}".format(action, status_code, format_error_messages(self.messages)),
            exit_code=STATUSES["internal-error"],
        )


class NetworkTimeoutError(ScriptWorkerTaskException):
    def __init__(self, msg):
        super().__init__(msg, exit_code=STATUSES["internal-error"])


class EditStateError(ScriptWorkerTaskException):
    def __init__(self, msg):
        super().__init__(msg, exit_code=STATUSES["internal-error"])


class LocalFileError(ScriptWorkerTaskException):
    def __init__(self, path, reason):
        self.path = path
        super().__init__('Cannot read "{}": {}'.format(path, reason), exit_code=STATUSES["malformed-payload"])


class UploadNotAppliedError(ScriptWorkerTaskException):
    def __init__(self, outcome, application_id):
        self.outcome = outcome
        super().__init__(
            'No change was applied to Google Play for "{}" ({})'.format(application_id, outcome.value),
            exit_code=STATUSES["failure"],
        )


def format_error_messages(messages):
    if not messages:
        return "Unknown error"
    return "\n" + "".join("- {}\n".format(message) for message in messages)
