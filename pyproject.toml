[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "loudbeat"
version = "0.1.0"
description = "Loudness analysis and beat synthesis for audio, reported over OSC"
requires-python = ">=3.10"
dependencies = ["numpy"]
keywords = ["audio", "loudness", "fft", "beat", "tempo", "osc"]
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
    "Topic :: Multimedia :: Sound/Audio :: Analysis",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
loudbeat = "loudbeat.app:main"

[tool.hatch.build.targets.wheel]
packages = ["loudbeat"]

[tool.pytest.ini_options]
addopts = "-ra"
