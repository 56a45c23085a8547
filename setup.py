"""
Setup script for the Style Scanner package.
"""

from setuptools import setup, find_packages
import os

# Read the README
readme_path = os.path.join(os.path.dirname(__file__), 'README.md')
if os.path.exists(readme_path):
    with open(readme_path, 'r', encoding='utf-8') as f:
        long_description = f.read()
else:
    long_description = "Rule-based style linter and formatter for Swift-like source code."

setup(
    name="stylescanner",
    version="1.0.0",
    author="Style Scanner Team",
    author_email="stylescanner@example.com",
    description="Rule-based style linter and formatter with automatic fixes for Swift-like code",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/stylescanner/stylescanner",
    packages=find_packages(exclude=["tests", "tests.*", "examples", "examples.*"]),
    python_requires=">=3.8",
    install_requires=[
        "pyyaml>=6.0",
        "rich>=13.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "pytest-cov>=4.0",
            "black>=23.0",
            "mypy>=1.0",
            "ruff>=0.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "stylescanner=stylescanner.cli:main",
            "stylescan=stylescanner.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Quality Assurance",
    ],
    keywords="style, linter, formatter, swift, static-analysis, code-quality",
    project_urls={
        "Bug Reports": "https://github.com/stylescanner/stylescanner/issues",
        "Documentation": "https://github.com/stylescanner/stylescanner#readme",
        "Source": "https://github.com/stylescanner/stylescanner",
    },
)
