[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tragedia"
version = "0.1.0"
description = "Game state for a scripted first-person dialogue adventure: save database, dialogue scripts, menus, fades, NPCs, levels and the player."
requires-python = ">=3.10"
dependencies = []
keywords = ["game", "dialogue", "adventure", "scripting", "npc", "menu"]
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
    "Topic :: Games/Entertainment",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["tragedia"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
