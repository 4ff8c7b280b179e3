[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ccspev"
version = "0.1.0"
description = "Vehicle-side CCS charging building blocks: EXI bit streams and decoding, a minimal TCP client, QCA7000 SPI framing, checksums and charger peripherals"
requires-python = ">=3.10"
keywords = ["ccs", "ev-charging", "exi", "v2g", "qca7000", "homeplug", "tcp", "ipv6"]
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
    "Topic :: Software Development :: Embedded Systems",
]
dependencies = []

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["ccspev"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 120
target-version = "py310"

[tool.mypy]
python_version = "3.10"
