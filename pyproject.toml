[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ostest"
version = "2.1.0"
description = "A small unit-testing harness with resource lists, argument packing, try/finally frames and synchronisation primitives."
requires-python = ">=3.10"
dependencies = []
keywords = ["unit testing", "test runner", "test suites", "circular list", "condition variable"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Testing :: Unit",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
ostest = "ostest.testing:main"

[tool.hatch.build.targets.wheel]
packages = ["ostest"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
