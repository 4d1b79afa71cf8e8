# setup.py
from setuptools import find_packages, setup

setup(
    name="storefront-service-core",
    version="0.1.0",
    packages=find_packages(include=["storefront_core", "storefront_core.*"]),
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        "fastapi>=0.110",
        "starlette>=0.36",
        "pydantic>=2.5",
        "pydantic-settings>=2.1",
        "structlog>=24.1",
        "sentry-sdk>=2.0",
        "httpx>=0.27",
        "uvicorn>=0.27",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
)
