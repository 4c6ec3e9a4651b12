[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "aria-scalper"
version = "0.1.0"
description = "Building blocks for a crypto scalping bot: indicators, order-flow signals, market feeds, learning policy, LLM context prompts, a trade journal and a metrics dashboard."
requires-python = ">=3.10"
keywords = [
    "crypto",
    "trading",
    "scalping",
    "technical-analysis",
    "indicators",
    "order-flow",
    "sentiment",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Financial and Insurance Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Framework :: AsyncIO",
    "Topic :: Office/Business :: Financial :: Investment",
]
dependencies = [
    "httpx>=0.27",
    "defusedxml>=0.7",
    "starlette>=0.37",
    "uvicorn>=0.29",
]

[project.optional-dependencies]
test = [
    "pytest>=8",
    "pytest-asyncio>=0.23",
    "respx>=0.21",
]

[tool.hatch.build.targets.wheel]
packages = ["aria_scalper"]

[tool.hatch.build.targets.sdist]
include = ["aria_scalper", "tests"]

[tool.pytest.ini_options]
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
