[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "webimagemeta"
version = "0.2.0"
description = "Lightweight reading, writing and stripping of JPEG and PNG metadata for web images"
requires-python = ">=3.10"
dependencies = []
keywords = ["jpeg", "png", "metadata", "exif", "icc", "image", "web"]
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
    "Topic :: Multimedia :: Graphics",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
webimagemeta-estimate = "webimagemeta.estimate:main"

[tool.hatch.build.targets.wheel]
packages = ["webimagemeta"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
strict = true
