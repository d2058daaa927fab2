[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cbsim"
version = "0.1.0"
description = "Colour-blindness simulation, image filters, a UDP image service and a quiz web service"
requires-python = ">=3.10"
keywords = ["color blindness", "daltonize", "image processing", "accessibility", "quiz"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Framework :: Flask",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Image Processing",
    "Topic :: Internet :: WWW/HTTP :: WSGI :: Application",
]
dependencies = [
    "pillow",
    "numpy",
    "flask",
    "pymongo",
    "python-dotenv",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
cbsim = "cbsim.web:main"

[tool.hatch.build.targets.wheel]
packages = ["cbsim"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
