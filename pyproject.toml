[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "m3operator"
version = "0.1.0"
description = "Builds Kubernetes objects and placement instances for M3DB clusters"
requires-python = ">=3.10"
dependencies = []
keywords = ["m3db", "kubernetes", "operator", "statefulset", "placement"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Clustering",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["m3operator"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
