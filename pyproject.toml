[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "perfaware"
version = "0.1.0"
description = "An 8086 decoder and simulator, haversine distance tools, timers, a repetition tester, a zone profiler and small interview puzzles"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "8086",
    "x86",
    "disassembler",
    "emulator",
    "simulator",
    "haversine",
    "profiler",
    "benchmark",
    "performance",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Emulators",
    "Topic :: Software Development :: Disassemblers",
    "Topic :: System :: Benchmark",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
sim86 = "perfaware.sim86:main"
estimate-cpu-timer-freq = "perfaware.timer:main"
gen-haversine = "perfaware.generate:main"
haversine = "perfaware.parse:main"
cp-rect = "perfaware.rect:main"
draw-circle = "perfaware.circle:main"
interview-puzzles = "perfaware.puzzles:main"

[tool.hatch.build.targets.wheel]
packages = ["perfaware"]

[tool.hatch.build.targets.sdist]
include = ["perfaware", "tests", "README.md", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
