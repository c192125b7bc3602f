import pytest
from scriptworker.context import Context


@pytest.fixture
def context(tmp_path):
    context = Context()
    context.config = {
        "work_dir": str(tmp_path),
        "taskcluster_scope_prefixes": ["project:releng:googleplay:"],
        "products": [
            {
                "product_names": ["example"],
                "credentials_file": "/path/to/example.json",
                "package_names": ["org.example.app"],
                "default_track": "internal",
            }
        ],
    }
    context.task = {
        "scopes": ["project:releng:googleplay:example"],
        "payload": {
            "upstreamArtifacts": [
                {"taskId": "arm-task-id", "taskType": "signing", "paths": ["public/build/arm.apk", "public/build/mapping.txt"]},
                {"taskId": "x86-task-id", "taskType": "signing", "paths": ["public/build/x86.apk"]},
            ],
            "google_play_track": "beta",
            "rollout_percentage": 10,
        },
    }
    return context
