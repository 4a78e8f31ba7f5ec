[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "runnerfleet"
version = "0.1.0"
description = "Helpers for managing fleets of self-hosted CI runners: template hashing, label selectors, replica set construction, recurring schedules and HTTP transport instrumentation."
requires-python = ">=3.10"
keywords = ["ci", "runners", "autoscaling", "schedule", "rrule", "fnv", "labels"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Build Tools",
]
dependencies = [
    "python-dateutil",
    "requests",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["runnerfleet"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
