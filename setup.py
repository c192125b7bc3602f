import os

from setuptools import find_packages, setup

project_dir = os.path.abspath(os.path.dirname(__file__))

with open(os.path.join(project_dir, "version.txt")) as f:
    version = f.read().rstrip()

# We allow commented lines in these files
with open(os.path.join(project_dir, "requirements/base.in")) as f:
    requirements = [line.rstrip("\n") for line in f if line.strip() and not line.startswith("#")]

with open(os.path.join(project_dir, "requirements/test.in")) as f:
    test_requirements = [line.rstrip("\n") for line in f if line.strip() and not line.startswith("#")]

setup(
    name="pushplayscript",
    version=version,
    description="TaskCluster Google Play Push Script",
    author="Mozilla Release Engineering",
    author_email="release+python@mozilla.com",
    url="https://github.com/mozilla-releng/pushplayscript",
    packages=find_packages("src"),
    package_data={"pushplayscript": ["data/*"]},
    package_dir={"": "src"},
    include_package_data=True,
    zip_safe=False,
    entry_points={"console_scripts": ["pushplayscript = pushplayscript.script:main"]},
    license="MPL2",
    install_requires=requirements,
    extras_require={"test": test_requirements},
    classifiers=["Programming Language :: Python :: 3.9", "Programming Language :: Python :: 3.10", "Programming Language :: Python :: 3.11"],
)
