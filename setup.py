"""Setup script for lambda-powerkit"""

from setuptools import setup, find_packages

setup(
    name="lambda-powerkit",
    version="0.1.0",
    packages=find_packages(where="python-glue", exclude=["tests", "tests.*"]),
    package_dir={"": "python-glue"},
    install_requires=[
        "pydantic>=2.5.0",
        "pydantic-settings>=2.1.0",
        "opentelemetry-api>=1.20.0",
        "opentelemetry-sdk>=1.20.0",
        "opentelemetry-exporter-otlp-proto-grpc>=1.20.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
        ],
    },
)
