"""Setup script for the gitproof package"""

from setuptools import setup, find_packages

dependencies = [
    "click>=8.0.0",
    "pyyaml>=6.0",
    "requests>=2.28.0",
    "openai>=1.0.0",
    "google-generativeai>=0.5.0",
]

setup(
    name="gitproof",
    version="1.0.0",
    description="Deterministic developer quality scores from GitHub account telemetry",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=dependencies,
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "gitproof=gitproof.cli:main",
        ],
    },
    python_requires=">=3.8",
)
