import logging
import re

from scriptworker.exceptions import TaskVerificationError

log = logging.getLogger(__name__)

# BCP 47 language codes, as Google Play accepts them
_LANGUAGE_PATTERN = re.compile(r"^[a-z]{2,3}([-_][0-9A-Z]{2,})?$")

STATUS_IN_PROGRESS = "inProgress"
STATUS_COMPLETED = "completed"


def transform_release_notes(release_notes):
    """Turn the release notes of the task payload into Google Play ``LocalizedText`` objects.

    Args:
        release_notes (list of dict): each dict has a ``language`` and a ``text``. May be None.

    Returns:
        list of dict: the localized texts, in the same order. None if ``release_notes`` is None.

    Raises:
        TaskVerificationError: if a language doesn't look like a Google Play language code.

    """
    if release_notes is None:
        return None

    localized_texts = []
    for note in release_notes:
        language = note["language"]
        if not _LANGUAGE_PATTERN.match(language):
            raise TaskVerificationError('"{}" is not a valid Google Play language code'.format(language))
        localized_texts.append({"language": language, "text": note["text"]})

    return localized_texts


def has_staged_rollout(rollout_fraction):
    return 0 < rollout_fraction < 1


def build_release(version_codes, rollout_fraction, release_notes=None):
    # Google Play tells a staged rollout apart from a full release by the presence of
    # "userFraction". Outside of (0, 1), it must not be sent at all.
    release = {
        "versionCodes": [str(version_code) for version_code in version_codes],
    }
    if has_staged_rollout(rollout_fraction):
        release["status"] = STATUS_IN_PROGRESS
        release["userFraction"] = rollout_fraction
    else:
        release["status"] = STATUS_COMPLETED

    if release_notes is not None:
        release["releaseNotes"] = release_notes

    return release
