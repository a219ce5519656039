[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sysprog"
version = "0.1.0"
description = "Building blocks for an HTTP proxy, a tiny web server with CGI support, and a job-control shell"
requires-python = ">=3.10"
dependencies = []
keywords = ["http", "cache", "web server", "cgi", "shell", "job control", "sockets"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: Proxy Servers",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: System :: Shells",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
sysprog-tiny = "sysprog.tiny:main"
sysprog-adder = "sysprog.adder:main"
tsh = "sysprog.tsh:main"

[tool.hatch.build.targets.wheel]
packages = ["sysprog"]

[tool.pytest.ini_options]
addopts = "-ra"
