import logging

from scriptworker.exceptions import TaskVerificationError

from pushplayscript.exceptions import ConfigValidationError
from pushplayscript.release import transform_release_notes

log = logging.getLogger(__name__)

ALLOWED_TRACKS = ("production", "beta", "alpha", "internal")
DEFAULT_ROLLOUT_PERCENTAGE = 100


def _handle_legacy_google_track(google_track):
    if google_track == "rollout":
        log.warning(
            'Using "rollout" as the Google Play Track is deprecated, please specify the '
            "target track that you would like to rollout to, instead. Assuming you meant "
            '"production" for this task.'
        )
        return "production"
    return google_track


def _get_google_track(product_config, payload):
    google_track = payload.get("google_play_track", product_config.get("default_track"))
    if google_track is None:
        raise TaskVerificationError('No Google Play track given, and the product has no "default_track"')

    google_track = _handle_legacy_google_track(google_track)
    if google_track not in ALLOWED_TRACKS:
        raise TaskVerificationError('Track "{}" is not allowed. Allowed ones are: {}'.format(google_track, ALLOWED_TRACKS))
    return google_track


def _get_rollout_fraction(payload):
    rollout_percentage = payload.get("rollout_percentage")
    if rollout_percentage is None:
        rollout_percentage = DEFAULT_ROLLOUT_PERCENTAGE
    if not 0 <= rollout_percentage <= 100:
        raise TaskVerificationError("rollout_percentage must be between 0 and 100. Given: {}".format(rollout_percentage))
    return rollout_percentage / 100


def get_publish_config(product_config, payload, android_product):
    google_track = _get_google_track(product_config, payload)
    rollout_fraction = _get_rollout_fraction(payload)
    log.info('"{}" will be published on the "{}" track (rollout fraction: {})'.format(android_product, google_track, rollout_fraction))
    try:
        credentials_file = product_config["credentials_file"]
    except KeyError:
        raise ConfigValidationError('"credentials_file" is not part of the configuration of "{}"'.format(android_product))

    return {
        "credentials_file": credentials_file,
        "application_id": product_config.get("application_id"),
        "package_names": product_config.get("package_names"),
        "google_track": google_track,
        "rollout_fraction": rollout_fraction,
        "release_notes": transform_release_notes(payload.get("release_notes")),
        "use_previous_expansion_files_if_missing": bool(payload.get("use_previous_expansion_files_if_missing", False)),
    }
