# setup.py
from setuptools import find_packages, setup

setup(
    name="recycling-point-finder",
    version="0.0.1",
    packages=find_packages(include=["app", "app.*", "scripts", "scripts.*"]),
    include_package_data=True,
    python_requires=">=3.11",
    install_requires=[
        "fastapi",
        "httpx",
        "pydantic",
        "pydantic-settings",
        "python-dotenv",
        "structlog",
        "sentry-sdk",
        "slowapi",
        "limits",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
        ],
    },
)
