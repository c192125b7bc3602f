#!/usr/bin/env python3
""" Push to Google Play main script
"""
import logging
import os
from importlib.metadata import PackageNotFoundError, version

from scriptworker import client
from scriptworker.exceptions import TaskVerificationError

from pushplayscript import apk, artifacts, googleplay, task
from pushplayscript.exceptions import ConfigValidationError, UploadNotAppliedError
from pushplayscript.publish_config import get_publish_config
from pushplayscript.upload import ApkUploadTask, UploadOutcome

log = logging.getLogger(__name__)


async def async_main(context):
    android_product = task.extract_android_product_from_scopes(context)
    product_config = _get_product_config(context, android_product)
    publish_config = get_publish_config(product_config, context.task["payload"], android_product)
    contact_server = not bool(context.config.get("do_not_contact_server"))

    logging.getLogger("googleapiclient.discovery_cache").setLevel(logging.WARNING)
    logging.getLogger("googleapiclient.http").setLevel(logging.WARNING)
    _log_warning_forewords(contact_server, publish_config["google_track"])

    log.info("Verifying upstream artifacts...")
    upload_files = artifacts.get_upload_files(context)
    apk_metadata = {apk_file: apk.get_apk_metadata(apk_file) for apk_file in upload_files.apk_files}
    application_id = _get_application_id(publish_config, apk_metadata)

    if not contact_server:
        log.info('Would have uploaded {} APK(s) for "{}". Skipping push...'.format(len(upload_files.apk_files), application_id))
        return

    service = googleplay.connect(
        publish_config["credentials_file"],
        get_user_agent(),
        timeout=int(context.config.get("request_timeout_seconds", googleplay.DEFAULT_REQUEST_TIMEOUT_SECONDS)),
    )
    upload_task = ApkUploadTask(
        service,
        application_id,
        upload_files.apk_files,
        apk_metadata=apk_metadata,
        apk_files_to_mapping_files=upload_files.apk_files_to_mapping_files,
        expansion_files=upload_files.expansion_files,
        use_previous_expansion_files_if_missing=publish_config["use_previous_expansion_files_if_missing"],
        track=publish_config["google_track"],
        rollout_fraction=publish_config["rollout_fraction"],
        release_notes=publish_config["release_notes"],
        work_dir=context.config.get("work_dir"),
    )
    outcome = upload_task.execute()
    if outcome != UploadOutcome.SUCCEEDED:
        raise UploadNotAppliedError(outcome, application_id)

    log.info("Done!")


def _get_product_config(context, android_product):
    try:
        products = context.config["products"]
    except KeyError:
        raise ConfigValidationError('"products" is not part of the configuration')

    matching_products = [product for product in products if android_product in product["product_names"]]

    if len(matching_products) == 0:
        raise TaskVerificationError(
            'Android "{}" does not exist in the configuration of this instance. Are you sure you allowed to push such an APK?'.format(android_product)
        )

    if len(matching_products) > 1:
        raise TaskVerificationError('The configuration is invalid: multiple product configs match the product "{}"'.format(android_product))

    return matching_products[0]


def _get_application_id(publish_config, apk_metadata):
    package_names = {metadata.package_name for metadata in apk_metadata.values()}
    if len(package_names) > 1:
        raise TaskVerificationError("All APKs must have the same package name. Found: {}".format(sorted(package_names)))

    package_name = package_names.pop()
    expected_package_names = publish_config.get("package_names")
    if expected_package_names and package_name not in expected_package_names:
        raise TaskVerificationError('Package name "{}" is not allowed. Allowed ones are: {}'.format(package_name, expected_package_names))

    application_id = publish_config.get("application_id") or package_name
    if application_id != package_name:
        raise TaskVerificationError('APKs are for "{}", but this product publishes "{}"'.format(package_name, application_id))

    return application_id


def _log_warning_forewords(contact_server, google_track):
    if contact_server:
        log.warning(
            'You will publish APKs to the "{}" track of Google Play. This action is irreversible, '
            "if no error is detected either by this script or by Google Play.".format(google_track)
        )
    else:
        log.warning("This pushplay instance is not allowed to talk to Google Play. *All* requests will be mocked.")


def get_user_agent():
    try:
        package_version = version("pushplayscript")
    except PackageNotFoundError:
        package_version = "dev"
    return "pushplayscript/{}".format(package_version)


def get_default_config():
    cwd = os.getcwd()
    parent_dir = os.path.dirname(cwd)

    return {
        "work_dir": os.path.join(parent_dir, "work_dir"),
        "schema_file": os.path.join(os.path.dirname(__file__), "data", "pushplay_task_schema.json"),
        "verbose": False,
    }


def main(config_path=None):
    client.sync_main(async_main, config_path=config_path, default_config=get_default_config())


__name__ == "__main__" and main()
