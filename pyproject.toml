[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "coursedesk"
version = "0.1.0"
description = "A small WSGI service for signing students up to courses, listing and cancelling enrollments, and finding classmates."
requires-python = ">=3.10"
keywords = ["courses", "enrollment", "students", "wsgi", "mysql"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: WSGI :: Application",
    "Topic :: Education",
]
dependencies = [
    "werkzeug>=2.3",
    "pymysql>=1.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
]

[project.scripts]
coursedesk = "coursedesk.main:main"

[tool.hatch.build.targets.wheel]
packages = ["coursedesk"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
