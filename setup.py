"""
LAN Print Agent - Setup Script
==============================

Install: pip install .
Install dev: pip install -e ".[dev]"
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as f:
    long_description = f.read()

with open("requirements.txt", "r", encoding="utf-8") as f:
    requirements = [line.strip() for line in f if line.strip() and not line.startswith("#")]

setup(
    name="lan-print-agent",
    version="2.0.0",
    description="Local network agent that discovers thermal receipt printers and forwards print jobs",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Operating System :: POSIX :: Linux",
        "Operating System :: Android",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Topic :: Printing",
    ],
    python_requires=">=3.10",
    install_requires=requirements,
    extras_require={
        "test": ["pytest", "pytest-cov", "anyio"],
        "dev": ["pytest", "pytest-cov", "anyio", "black", "flake8"],
    },
    entry_points={
        "console_scripts": [
            "lan-print-agent=lan_print_agent.__main__:main",
            "lan-print-agent-test=lan_print_agent.cli:main",
        ],
    },
)
