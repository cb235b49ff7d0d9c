[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "xdgkit"
version = "0.1.0"
description = "Freedesktop.org icon theme lookup and application menu file reading"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "xdg",
    "freedesktop",
    "icon-theme",
    "icon-theme-cache",
    "desktop-menu",
    "menu-spec",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Desktop Environment",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
xdgkit-iconfinder = "xdgkit.iconfinder:main"

[tool.hatch.build.targets.wheel]
packages = ["xdgkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
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
