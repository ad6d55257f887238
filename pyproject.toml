[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "agentinspect"
version = "0.1.0"
description = "Discover local observability agents and describe their data pipelines"
requires-python = ">=3.10"
keywords = ["observability", "opentelemetry", "collector", "elastic-agent", "monitoring", "pipeline"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Operating System :: MacOS",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
]
dependencies = [
    "pyyaml>=6.0",
    "requests>=2.28",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
    "responses>=0.23",
]

[project.scripts]
agentinspect = "agentinspect.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["agentinspect"]

[tool.pytest.ini_options]
addopts = "-ra"
