[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "streamkit"
version = "0.1.0"
description = "Topic management, an in-memory stream tester and action/query helpers for stream-processing applications"
requires-python = ">=3.10"
dependencies = []
keywords = ["stream-processing", "kafka", "topics", "testing", "tables"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Distributed Computing",
    "Topic :: Software Development :: Testing",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["streamkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
