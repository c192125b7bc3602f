import pytest
from scriptworker.exceptions import TaskVerificationError

from pushplayscript.release import build_release, transform_release_notes


@pytest.mark.parametrize(
    "rollout_fraction, expected_status",
    (
        (0.0, "completed"),
        (0, "completed"),
        (1.0, "completed"),
        (1, "completed"),
        (0.001, "inProgress"),
        (0.1, "inProgress"),
        (0.5, "inProgress"),
        (0.999, "inProgress"),
    ),
)
def test_build_release_status(rollout_fraction, expected_status):
    release = build_release([42], rollout_fraction)
    assert release["status"] == expected_status
    if expected_status == "completed":
        assert "userFraction" not in release
    else:
        assert release["userFraction"] == rollout_fraction


def test_build_release_serializes_version_codes_in_order():
    assert build_release([12, 10, 11], 1.0)["versionCodes"] == ["12", "10", "11"]


def test_build_release_without_release_notes():
    assert build_release([42], 0.5) == {"versionCodes": ["42"], "status": "inProgress", "userFraction": 0.5}


def test_build_release_carries_release_notes_unchanged():
    release_notes = [{"language": "en-US", "text": "Bug fixes"}, {"language": "de-DE", "text": "Fehlerbehebungen"}]
    release = build_release([42], 1.0, release_notes)
    assert release["releaseNotes"] == release_notes
    assert release["releaseNotes"] is release_notes


def test_transform_release_notes():
    release_notes = [{"language": "en-US", "text": "Bug fixes"}, {"language": "fil", "text": "Mga pag-aayos"}, {"language": "es-419", "text": "Correcciones"}]
    assert transform_release_notes(release_notes) == release_notes


def test_transform_release_notes_keeps_absent_notes_absent():
    assert transform_release_notes(None) is None
    assert transform_release_notes([]) == []


@pytest.mark.parametrize("language", ("EN", "en-us", "english", "e", ""))
def test_transform_release_notes_rejects_invalid_languages(language):
    with pytest.raises(TaskVerificationError):
        transform_release_notes([{"language": language, "text": "Bug fixes"}])
