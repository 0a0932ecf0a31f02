"""
SchemaGuard - MSSQL naming validation and multi-format schema export
Install: pip install -e .
"""

from pathlib import Path

from setuptools import setup, find_packages

readme = Path(__file__).parent / "README.md"
long_description = readme.read_text(encoding="utf-8") if readme.exists() else ""

setup(
    name="schemaguard",
    version="1.0.0",
    author="NexaFlow Team",
    author_email="",
    description="Validate MSSQL naming conventions and export schemas as DDL or docs",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["schemaguard", "schemaguard.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Database",
        "Topic :: Software Development :: Quality Assurance",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.10",
    install_requires=[
        "pydantic>=2.0.0",
        "pyyaml>=6.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "black>=23.0",
            "ruff>=0.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "schemaguard=schemaguard.cli:cli_main",
        ],
    },
    keywords="mssql, sql-server, naming-convention, schema, ddl, linter",
)
