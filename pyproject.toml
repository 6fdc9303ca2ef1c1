[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tinysim"
version = "0.1.0"
description = "A small entity-component physics simulator with rigid bodies, collisions and position-based cloth"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = ["physics", "simulation", "cloth", "pbd", "collision", "rigid body", "ecs"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Physics",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
tinysim = "tinysim.simulation:main"

[tool.hatch.build.targets.wheel]
packages = ["tinysim"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
