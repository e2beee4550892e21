[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "legacyclient"
version = "0.1.0"
description = "A pooling asynchronous HTTP/1.1 client with connection reuse, proxy forms and retry of canceled requests"
requires-python = ">=3.10"
keywords = ["http", "client", "asyncio", "connection-pool", "http1"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Framework :: AsyncIO",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Internet :: WWW/HTTP",
]
dependencies = [
    "h11>=0.14",
]

[project.optional-dependencies]
test = [
    "pytest>=7",
    "pytest-asyncio>=0.21",
]

[project.scripts]
legacyclient = "legacyclient.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["legacyclient"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
