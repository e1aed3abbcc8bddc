[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "framecast"
version = "0.1.0"
description = "Dither pictures to a six-colour e-paper palette and stream them to a 13.3 inch picture frame"
requires-python = ">=3.10"
keywords = ["e-paper", "epd", "dithering", "picture-frame", "floyd-steinberg", "palette"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Environment :: Web Environment",
    "Intended Audience :: Developers",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Framework :: AsyncIO",
    "Topic :: Multimedia :: Graphics :: Graphics Conversion",
]
dependencies = [
    "pillow",
    "aiohttp",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
framecast-server = "framecast.server:main"
framecast-client = "framecast.client:main"

[tool.hatch.build.targets.wheel]
packages = ["framecast"]

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
