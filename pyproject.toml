[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "yantra"
version = "0.1.0"
description = "Agent runtime with a think-act-observe turn loop, workspace-guarded built-in tools and layered configuration"
requires-python = ">=3.11"
dependencies = [
    "httpx",
]
keywords = ["agent", "llm", "tools", "runtime", "assistant"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Artificial Intelligence",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
    "respx",
]

[tool.hatch.build.targets.wheel]
packages = ["yantra"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.ruff.lint]
select = ["E", "F", "I", "B", "UP"]

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
