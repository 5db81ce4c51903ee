[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gazellemq"
version = "0.1.0"
description = "Client for a GazelleMQ message hub: publish, subscribe and manage subscriptions over TCP"
requires-python = ">=3.10"
dependencies = []
keywords = ["gazellemq", "message queue", "pubsub", "publish-subscribe", "messaging", "client"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Distributed Computing",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-timeout",
]

[project.scripts]
gazellemq-bench-publisher = "gazellemq.bench_publisher:main"
gazellemq-bench-subscriber = "gazellemq.bench_subscriber:main"

[tool.hatch.build.targets.wheel]
packages = ["gazellemq"]

[tool.hatch.build.targets.sdist]
include = ["gazellemq", "tests", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
