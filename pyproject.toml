[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "toolbench"
version = "0.1.0"
description = "Small systems utilities: MQTT packet codecs, a student-registration socket service and command-line helpers"
requires-python = ">=3.10"
dependencies = []
keywords = ["mqtt", "packet", "unix-socket", "file-count"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries",
    "Topic :: Communications",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
toolbench-power = "toolbench.power:main"
toolbench-filecount = "toolbench.filecount:main"
toolbench-student-server = "toolbench.studentinfo:server_main"
toolbench-student-client = "toolbench.studentinfo:client_main"

[tool.hatch.build.targets.wheel]
packages = ["toolbench"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
