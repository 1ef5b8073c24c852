[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "swipesvc"
version = "0.1.0"
description = "HTTP service that records swipes, publishes them to a message queue and lists likes and matches"
requires-python = ">=3.10"
keywords = ["swipe", "matches", "http", "wsgi", "postgres", "rabbitmq"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Web Environment",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: Internet :: WWW/HTTP :: WSGI :: Application",
]
dependencies = [
    "sqlalchemy",
    "pika",
    "pyjwt",
    "werkzeug",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
swipesvc = "swipesvc.main:main"

[tool.hatch.build.targets.wheel]
packages = ["swipesvc"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
