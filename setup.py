"""Setup script for TokenGate."""

from setuptools import setup, find_packages


def read_requirements(path):
    with open(path) as f:
        # Filter out comments and empty lines
        return [
            line.strip() for line in f.read().splitlines()
            if line.strip() and not line.startswith("#")
        ]


setup(
    name="tokengate",
    version="0.1.0",
    description="Token-gated access portal for protected content pages",
    author="TokenGate Team",
    packages=find_packages(include=["tokengate", "tokengate.*"]),
    install_requires=read_requirements("requirements.txt"),
    extras_require={
        "test": read_requirements("requirements-test.txt"),
    },
    entry_points={
        "console_scripts": [
            "tokengate=tokengate.cli.main:app",
        ],
    },
    python_requires=">=3.9",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Framework :: FastAPI",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
