"""
Orbit Cache
Tiered in-memory cache for the OrbitABM platform

Setup script for package installation

Version History:
- 1.0.0: Four-tier LRU cache, stale-while-revalidate, pattern invalidation
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

with open("requirements.txt", "r", encoding="utf-8") as fh:
    requirements = [line.strip() for line in fh if line.strip() and not line.startswith("#")]

setup(
    name="orbit-cache",
    version="1.0.0",
    author="OrbitABM",
    description="Orbit Cache - tiered in-memory cache with stale-while-revalidate",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Libraries",
    ],
    python_requires=">=3.10",
    install_requires=requirements,
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "black>=23.0.0",
            "isort>=5.12.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "orbit-cache=orbit.cli:main",
        ],
    },
    include_package_data=True,
    package_data={
        "orbit": [
            "config/*.yaml",
        ],
    },
)
