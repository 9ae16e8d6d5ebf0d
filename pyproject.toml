[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tutorialdocs"
version = "0.1.0"
description = "Generate tutorial documents by running their embedded shell snippets in Docker and capturing the output"
requires-python = ">=3.10"
dependencies = []
keywords = ["documentation", "tutorial", "docker", "markdown", "generator", "artifacts"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Documentation",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
docs-generator = "tutorialdocs.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["tutorialdocs"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
strict = true
