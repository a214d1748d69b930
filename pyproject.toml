[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "webguard"
version = "0.1.0"
description = "CORS controls and Redis-backed fixed-window rate limiting as request middleware"
requires-python = ">=3.10"
dependencies = [
    "redis",
]
keywords = ["cors", "cross-origin", "middleware", "rate-limit", "redis", "wsgi"]
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
    "Topic :: Internet :: WWW/HTTP :: WSGI :: Middleware",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
webguard-demo = "webguard.demo:main"

[tool.hatch.build.targets.wheel]
packages = ["webguard"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
